"""Configuration sections with their defaults and validation rules."""

from __future__ import annotations

import ipaddress
import os
import sys
from dataclasses import dataclass, field
from datetime import timedelta


class ConfigError(ValueError):
    """A configuration value is out of its allowed range."""


VALID_NET_PARAMS = frozenset({"mainnet", "testnet", "simnet", "signet", "regtest"})
DEFAULT_NET_PARAMS = "simnet"

LOG_FORMATS = ("json", "auto", "console", "logfmt")
LOG_LEVELS = ("debug", "warn", "error", "panic", "fatal")

DEFAULT_DB_NAME = "vigilante.db"
DEFAULT_DATA_DIRNAME = "data"
APP_NAME = "babylon-vigilante"

MAX_BATCH_SIZE = 10000
MAX_SLASHING_CONCURRENCY = 20

DEFAULT_CHECKPOINT_CACHE_MAX_ENTRIES = 100
DEFAULT_POLLING_INTERVAL_SECONDS = 60
DEFAULT_RESEND_INTERVAL_SECONDS = 1800
DEFAULT_RESUBMIT_FEE_MULTIPLIER = 1.0
DEFAULT_INSUFFICIENT_FEE_MARGIN = 0.15
DEFAULT_INSUFFICIENT_FEERATE_MARGIN = 0.15
DEFAULT_FEE_INCREMENT_MARGIN = 0.15

_DEFAULT_CHECKPOINT_BUFFER_SIZE = 100
_DEFAULT_BTC_BLOCK_BUFFER_SIZE = 100
_DEFAULT_BTC_CACHE_SIZE = 100
_DEFAULT_BTC_CONFIRMATION_DEPTH = 6
_DEFAULT_LIVENESS_CHECK_INTERVAL_SECONDS = 10
_DEFAULT_MAX_LIVE_BTC_HEIGHTS = 100

_MIN_BTC_CACHE_SIZE = 1000
_MAX_HEADERS_IN_MSG = 100

_BOLT_AUTO_COMPACT_MIN_AGE = timedelta(hours=24 * 7)
_DB_TIMEOUT = timedelta(seconds=60)


def _key(name: str) -> dict:
    return {"key": name}


def default_app_data_dir() -> str:
    """Per-user application directory, following the platform's conventions."""
    home = os.path.expanduser("~")
    if sys.platform.startswith("win"):
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or home
        return os.path.join(base, APP_NAME.capitalize())
    if sys.platform == "darwin":
        return os.path.join(home, "Library", "Application Support", APP_NAME.capitalize())
    return os.path.join(home, "." + APP_NAME)


def data_dir(home_path: str) -> str:
    return os.path.join(home_path, DEFAULT_DATA_DIRNAME)


@dataclass
class CommonConfig:
    log_format: str = field(default="auto", metadata=_key("log-format"))
    log_level: str = field(default="debug", metadata=_key("log-level"))
    retry_sleep_time: timedelta = field(
        default=timedelta(seconds=5), metadata=_key("retry-sleep-time")
    )
    max_retry_sleep_time: timedelta = field(
        default=timedelta(minutes=5), metadata=_key("max-retry-sleep-time")
    )
    max_retry_times: int = field(default=25, metadata=_key("max-retry-times"))

    def validate(self) -> None:
        if self.log_format not in LOG_FORMATS:
            raise ConfigError("log-format is not one of json|auto|console|logfmt")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError("log-level is not one of debug|warn|error|panic|fatal")
        if self.retry_sleep_time <= timedelta(0):
            raise ConfigError("retry-sleep-time can't be negative")
        if self.max_retry_sleep_time <= timedelta(0):
            raise ConfigError("max-retry-sleep-time can't be negative")


@dataclass
class DBConfig:
    db_path: str = field(
        default_factory=lambda: data_dir(default_app_data_dir()), metadata=_key("dbpath")
    )
    db_file_name: str = field(default=DEFAULT_DB_NAME, metadata=_key("dbfilename"))
    no_freelist_sync: bool = field(default=True, metadata=_key("nofreelistsync"))
    auto_compact: bool = field(default=False, metadata=_key("autocompact"))
    auto_compact_min_age: timedelta = field(
        default=_BOLT_AUTO_COMPACT_MIN_AGE, metadata=_key("autocompactminage")
    )
    db_timeout: timedelta = field(default=_DB_TIMEOUT, metadata=_key("dbtimeout"))

    @classmethod
    def with_home_path(cls, home_path: str) -> DBConfig:
        return cls(db_path=data_dir(home_path))

    def validate(self) -> None:
        if not self.db_path:
            raise ConfigError("DB path cannot be empty")
        if not self.db_file_name:
            raise ConfigError("DB file name cannot be empty")


@dataclass
class BTCStakingTrackerConfig:
    check_delegations_interval: timedelta = field(
        default=timedelta(minutes=1), metadata=_key("check-delegations-interval")
    )
    new_delegations_batch_size: int = field(
        default=500, metadata=_key("delegations-batch-size")
    )
    check_delegation_active_interval: timedelta = field(
        default=timedelta(minutes=5), metadata=_key("check-if-delegation-active-interval")
    )
    retry_submit_unbonding_tx_interval: timedelta = field(
        default=timedelta(minutes=1), metadata=_key("retry-submit-unbonding-interval")
    )
    retry_jitter: timedelta = field(
        default=timedelta(seconds=30), metadata=_key("max-jitter-interval")
    )
    btc_net_params: str = field(default=DEFAULT_NET_PARAMS, metadata=_key("btcnetparams"))
    max_slashing_concurrency: int = field(
        default=MAX_SLASHING_CONCURRENCY, metadata=_key("max-slashing-concurrency")
    )
    indexer_addr: str = field(default="http://localhost:3000", metadata=_key("indexer-addr"))
    fetch_evidence_interval: timedelta = field(
        default=timedelta(seconds=30), metadata=_key("fetch-evidence-interval")
    )
    fetch_comet_block_interval: timedelta = field(
        default=timedelta(seconds=2), metadata=_key("fetch-comet-block-interval")
    )

    def validate(self) -> None:
        zero = timedelta(0)
        if self.check_delegations_interval <= zero:
            raise ConfigError("check-delegations-interval can't be negative")
        if self.check_delegation_active_interval <= zero:
            raise ConfigError("check-if-delegation-active-interval can't be negative")
        if self.fetch_evidence_interval <= zero:
            raise ConfigError("fetch-evidence-interval can't be negative")
        if self.retry_submit_unbonding_tx_interval <= zero:
            raise ConfigError("retry-submit-unbonding-interval can't be negative")
        if self.retry_jitter <= zero:
            raise ConfigError("max-jitter-interval can't be negative")
        if self.new_delegations_batch_size > MAX_BATCH_SIZE:
            raise ConfigError("delegations-batch-size can't be greater than 10000")
        if self.btc_net_params not in VALID_NET_PARAMS:
            raise ConfigError(f"invalid net params {self.btc_net_params}")
        if self.max_slashing_concurrency == 0:
            raise ConfigError("max-slashing-concurrency cannot be 0")
        if not self.indexer_addr:
            raise ConfigError("indexer-addr cannot be empty")
        if self.fetch_comet_block_interval <= zero:
            raise ConfigError("fetch-comet-block-interval can't be negative")


@dataclass
class MetricsConfig:
    host: str = field(default="0.0.0.0", metadata=_key("host"))
    server_port: int = field(default=2112, metadata=_key("server-port"))

    def validate(self) -> None:
        if self.server_port < 0 or self.server_port > 65535:
            raise ConfigError(f"invalid port: {self.server_port}")
        if "%" in self.host:
            raise ConfigError(f"invalid host: {self.host}")
        try:
            ipaddress.ip_address(self.host)
        except ValueError:
            raise ConfigError(f"invalid host: {self.host}") from None


@dataclass
class MonitorConfig:
    checkpoint_buffer_size: int = field(
        default=_DEFAULT_CHECKPOINT_BUFFER_SIZE, metadata=_key("checkpoint-buffer-size")
    )
    btc_block_buffer_size: int = field(
        default=_DEFAULT_BTC_BLOCK_BUFFER_SIZE, metadata=_key("btc-block-buffer-size")
    )
    btc_cache_size: int = field(default=_DEFAULT_BTC_CACHE_SIZE, metadata=_key("btc-cache-size"))
    liveness_check_interval_seconds: int = field(
        default=_DEFAULT_LIVENESS_CHECK_INTERVAL_SECONDS,
        metadata=_key("liveness-check-interval-seconds"),
    )
    max_live_btc_heights: int = field(
        default=_DEFAULT_MAX_LIVE_BTC_HEIGHTS, metadata=_key("max-live-btc-heights")
    )
    btc_confirmation_depth: int = field(
        default=_DEFAULT_BTC_CONFIRMATION_DEPTH, metadata=_key("btc-confirmation-depth")
    )
    enable_liveness_checker: bool = field(default=True, metadata=_key("enable-liveness-checker"))
    database_config: DBConfig | None = field(default_factory=DBConfig, metadata=_key("dbconfig"))

    def validate(self) -> None:
        if self.checkpoint_buffer_size < _DEFAULT_CHECKPOINT_BUFFER_SIZE:
            raise ConfigError(
                f"checkpoint-buffer-size should not be less than {_DEFAULT_CHECKPOINT_BUFFER_SIZE}"
            )
        if self.btc_cache_size < _DEFAULT_BTC_CACHE_SIZE:
            raise ConfigError(
                f"btc-cache-size should not be less than {_DEFAULT_CHECKPOINT_BUFFER_SIZE}"
            )
        if self.btc_confirmation_depth < _DEFAULT_BTC_CONFIRMATION_DEPTH:
            raise ConfigError(
                f"btc-confirmation-depth should not be less than {_DEFAULT_BTC_CONFIRMATION_DEPTH}"
            )


@dataclass
class ReporterConfig:
    net_params: str = field(default=DEFAULT_NET_PARAMS, metadata=_key("netparams"))
    btc_cache_size: int = field(default=_MIN_BTC_CACHE_SIZE, metadata=_key("btc_cache_size"))
    max_headers_in_msg: int = field(
        default=_MAX_HEADERS_IN_MSG, metadata=_key("max_headers_in_msg")
    )

    def validate(self) -> None:
        if self.net_params not in VALID_NET_PARAMS:
            raise ConfigError("invalid net params")
        if self.btc_cache_size < _MIN_BTC_CACHE_SIZE:
            raise ConfigError(f"BTC cache size has to be at least {_MIN_BTC_CACHE_SIZE}")
        if self.max_headers_in_msg < _MAX_HEADERS_IN_MSG:
            raise ConfigError(f"max_headers_in_msg has to be at least {_MAX_HEADERS_IN_MSG}")


@dataclass
class SubmitterConfig:
    net_params: str = field(default=DEFAULT_NET_PARAMS, metadata=_key("netparams"))
    buffer_size: int = field(
        default=DEFAULT_CHECKPOINT_CACHE_MAX_ENTRIES, metadata=_key("buffer-size")
    )
    resubmit_fee_multiplier: float = field(
        default=DEFAULT_RESUBMIT_FEE_MULTIPLIER, metadata=_key("resubmit-fee-multiplier")
    )
    polling_interval_seconds: int = field(
        default=DEFAULT_POLLING_INTERVAL_SECONDS, metadata=_key("polling-interval-seconds")
    )
    resend_interval_seconds: int = field(
        default=DEFAULT_RESEND_INTERVAL_SECONDS, metadata=_key("resend-interval-seconds")
    )
    database_config: DBConfig | None = field(default_factory=DBConfig, metadata=_key("dbconfig"))
    insufficient_fee_margin: float = field(
        default=DEFAULT_INSUFFICIENT_FEE_MARGIN, metadata=_key("insufficient_fee_margin")
    )
    insufficient_feerate_margin: float = field(
        default=DEFAULT_INSUFFICIENT_FEERATE_MARGIN, metadata=_key("insufficient_feerate_margin")
    )
    fee_increment_margin: float = field(
        default=DEFAULT_FEE_INCREMENT_MARGIN, metadata=_key("fee_increment_margin")
    )

    def validate(self) -> None:
        if self.net_params not in VALID_NET_PARAMS:
            raise ConfigError("invalid net params")
        if self.resubmit_fee_multiplier < 1:
            raise ConfigError("invalid resubmit-fee-multiplier, should not be less than 1")
        if self.polling_interval_seconds < 0:
            raise ConfigError("invalid polling-interval-seconds, should be positive")
        if self.resend_interval_seconds <= 0:
            raise ConfigError("invalid resend-interval-seconds, should be positive")
        if self.buffer_size <= 0:
            raise ConfigError("invalid buffer-size, should be positive")
        if self.database_config is None:
            raise ConfigError("invalid dbconfig")
        if self.insufficient_fee_margin < 0:
            raise ConfigError("invalid insufficient_fee_margin, should be positive")
        if self.insufficient_feerate_margin < 0:
            raise ConfigError("invalid insufficient_feerate_margin, should be positive")
        if self.fee_increment_margin < 0:
            raise ConfigError("invalid fee_increment_margin, should be positive")
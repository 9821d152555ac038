import os
import sys
from dataclasses import replace
from datetime import timedelta

import pytest

from vigilante.sections import (
    BTCStakingTrackerConfig,
    CommonConfig,
    ConfigError,
    DBConfig,
    MetricsConfig,
    MonitorConfig,
    ReporterConfig,
    SubmitterConfig,
    data_dir,
    default_app_data_dir,
)


def test_common_defaults():
    cfg = CommonConfig()
    assert (cfg.log_format, cfg.log_level) == ("auto", "debug")
    assert cfg.retry_sleep_time == timedelta(seconds=5)
    assert cfg.max_retry_sleep_time == timedelta(minutes=5)
    assert cfg.max_retry_times == 25


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"log_format": "xml"}, "log-format is not one of"),
        ({"log_level": "info"}, "log-level is not one of"),
        ({"retry_sleep_time": timedelta(0)}, "retry-sleep-time can't be negative"),
        ({"max_retry_sleep_time": timedelta(seconds=-1)}, "max-retry-sleep-time"),
    ],
)
def test_common_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(CommonConfig(), **changes).validate()


def test_data_dir_joins_data():
    assert data_dir("/srv/app") == os.path.join("/srv/app", "data")


def test_db_config_with_home_path():
    cfg = DBConfig.with_home_path("/srv/app")
    assert cfg.db_path == data_dir("/srv/app")
    assert cfg.db_file_name == "vigilante.db"
    assert cfg.no_freelist_sync is True
    assert cfg.auto_compact is False


def test_db_config_default_path_under_app_dir():
    assert DBConfig().db_path == data_dir(default_app_data_dir())


def test_default_app_data_dir_on_linux(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("HOME", "/home/someone")
    assert default_app_data_dir() == os.path.join("/home/someone", ".babylon-vigilante")


@pytest.mark.parametrize(
    "changes, message",
    [({"db_path": ""}, "DB path cannot be empty"), ({"db_file_name": ""}, "DB file name")],
)
def test_db_config_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(DBConfig.with_home_path("/x"), **changes).validate()


def test_tracker_defaults():
    cfg = BTCStakingTrackerConfig()
    assert cfg.btc_net_params == "simnet"
    assert cfg.max_slashing_concurrency == 20
    assert cfg.indexer_addr == "http://localhost:3000"
    assert cfg.new_delegations_batch_size == 500
    assert cfg.check_delegation_active_interval == timedelta(minutes=5)


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"check_delegations_interval": timedelta(0)}, "check-delegations-interval"),
        ({"check_delegation_active_interval": timedelta(0)}, "check-if-delegation-active-interval"),
        ({"fetch_evidence_interval": timedelta(0)}, "fetch-evidence-interval"),
        ({"retry_submit_unbonding_tx_interval": timedelta(0)}, "retry-submit-unbonding-interval"),
        ({"retry_jitter": timedelta(0)}, "max-jitter-interval"),
        ({"new_delegations_batch_size": 10001}, "greater than 10000"),
        ({"btc_net_params": "moonnet"}, "invalid net params moonnet"),
        ({"max_slashing_concurrency": 0}, "cannot be 0"),
        ({"indexer_addr": ""}, "indexer-addr cannot be empty"),
        ({"fetch_comet_block_interval": timedelta(0)}, "fetch-comet-block-interval"),
    ],
)
def test_tracker_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(BTCStakingTrackerConfig(), **changes).validate()


def test_tracker_accepts_max_batch_size():
    cfg = replace(BTCStakingTrackerConfig(), new_delegations_batch_size=10000)
    assert cfg.validate() is None


def test_metrics_defaults_and_invalid():
    cfg = MetricsConfig()
    assert (cfg.host, cfg.server_port) == ("0.0.0.0", 2112)
    with pytest.raises(ConfigError, match="invalid port"):
        replace(cfg, server_port=65536).validate()
    with pytest.raises(ConfigError, match="invalid host"):
        replace(cfg, host="localhost").validate()


def test_metrics_accepts_ipv6_host():
    assert replace(MetricsConfig(), host="::1").validate() is None


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"checkpoint_buffer_size": 99}, "checkpoint-buffer-size"),
        ({"btc_cache_size": 99}, "btc-cache-size"),
        ({"btc_confirmation_depth": 5}, "btc-confirmation-depth should not be less than 6"),
    ],
)
def test_monitor_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(MonitorConfig(), **changes).validate()


def test_monitor_defaults():
    cfg = MonitorConfig()
    assert cfg.enable_liveness_checker is True
    assert cfg.btc_confirmation_depth == 6
    assert cfg.database_config == DBConfig()


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"net_params": "other"}, "invalid net params"),
        ({"btc_cache_size": 999}, "BTC cache size has to be at least 1000"),
        ({"max_headers_in_msg": 99}, "max_headers_in_msg has to be at least 100"),
    ],
)
def test_reporter_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(ReporterConfig(), **changes).validate()


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"net_params": "other"}, "invalid net params"),
        ({"resubmit_fee_multiplier": 0.5}, "resubmit-fee-multiplier"),
        ({"polling_interval_seconds": -1}, "polling-interval-seconds"),
        ({"resend_interval_seconds": 0}, "resend-interval-seconds"),
        ({"buffer_size": 0}, "buffer-size"),
        ({"database_config": None}, "invalid dbconfig"),
        ({"insufficient_fee_margin": -0.1}, "insufficient_fee_margin"),
        ({"insufficient_feerate_margin": -0.1}, "insufficient_feerate_margin"),
        ({"fee_increment_margin": -0.1}, "fee_increment_margin"),
    ],
)
def test_submitter_invalid(changes, message):
    with pytest.raises(ConfigError, match=message):
        replace(SubmitterConfig(), **changes).validate()


def test_submitter_defaults():
    cfg = SubmitterConfig()
    assert cfg.resend_interval_seconds == 1800
    assert cfg.polling_interval_seconds == 60
    assert cfg.fee_increment_margin == 0.15
    assert cfg.buffer_size == 100


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        replace(ReporterConfig(), net_params="x").validate()
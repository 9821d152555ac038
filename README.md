# vigilante

Building blocks for watching BTC staking delegations: validated configuration
sections, a root logger, Bitcoin transaction encoding, a thread-safe registry
of tracked delegations, a retry helper, and recognition of unbonding
transactions. It needs nothing beyond the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Configuration sections (`vigilante.sections`)

Each section is a dataclass with defaults and a `validate()` method that
raises `ConfigError` (a `ValueError`) when a value is out of range:

- `CommonConfig`: log format (`json`, `auto`, `console`, `logfmt`), log level
  (`debug`, `warn`, `error`, `panic`, `fatal`) and retry timing.
- `BTCStakingTrackerConfig`: polling intervals, batch size (at most 10000),
  BTC network (`mainnet`, `testnet`, `simnet`, `signet`, `regtest`), slashing
  concurrency and indexer address.
- `MetricsConfig`: host (must be an IP address) and port (0 to 65535).
- `MonitorConfig`, `ReporterConfig`, `SubmitterConfig`: buffer and cache
  sizes, network and fee margins.
- `DBConfig`: database directory and file name; `DBConfig.with_home_path(home)`
  places the database under `data_dir(home)`.

`default_app_data_dir()` returns the per-user application directory for the
current platform.

```python
from datetime import timedelta
from vigilante.sections import BTCStakingTrackerConfig, ConfigError

cfg = BTCStakingTrackerConfig(retry_jitter=timedelta(0))
try:
    cfg.validate()
except ConfigError as exc:
    print(exc)  # max-jitter-interval can't be negative
```

## Logging (`vigilante.logsetup`)

`new_root_logger(log_format, log_level)` configures the `vigilante` logger to
write to stderr in `json`, `auto`/`console` or `logfmt` form, with UTC
timestamps. An unknown format raises `ValueError`; an unknown level falls back
to info. Extra key/value pairs passed as `extra={"fields": {...}}` are added to
each line.

## Transactions (`vigilante.btctx`)

`Transaction`, `TxIn`, `TxOut` and `OutPoint` model Bitcoin transactions.
`Transaction.from_hex` / `from_bytes` parse the wire format (with or without
witness data), `serialize()` encodes it, `tx_hash()` gives the transaction id
in display hex, and `copy()` returns a deep copy. Malformed or truncated data
raises `ValueError`.

## Tracking delegations (`vigilante.tracked`)

`TrackedDelegations` is a thread-safe store of `TrackedDelegation` entries
keyed by staking transaction hash. An entry may also be tracked empty, as a
bare hash.

```python
from vigilante.tracked import TrackedDelegations

tracked = TrackedDelegations()
tracked.add_delegation(staking_tx, 0, unbonding_output, 100)
changed, exists = tracked.has_delegation_changed(staking_tx.tx_hash(), 101)
tracked.update_activation(staking_tx.tx_hash(), True)
for delegation in tracked.iter_delegations(1000):
    ...
```

`add_delegation` raises `ValueError` for a hash already tracked unless
`should_update` is true; `add_empty_delegation` raises `ValueError` for a
tracked hash; `update_activation` raises `KeyError` when no delegation is
stored for the hash. `iter_delegations` yields copies, taking the lock once
per chunk.

## Retrying (`vigilante.retrying`)

`retry(fn, attempts=..., delay=..., max_delay=..., max_jitter=...,
stop_event=..., on_retry=..., last_error_only=...)` calls `fn` until it
returns. `attempts=0` retries forever; each wait is the delay plus random
jitter, capped at `max_delay`. When attempts run out the last error is raised;
setting `stop_event` aborts with `RetryAborted`.

## Unbonding transactions (`vigilante.spend`)

`parse_staker_signature(tx, delegation)` checks that `tx` has the
delegation's single unbonding output and spends its staking output, and
returns the 64-byte staker Schnorr signature from the witness. Any other
transaction raises `NotUnbondingTxError`. `staking_tx_input_index` finds the
input spending the staking output, and `deduplicate` keeps items in
first-seen order.

## What this package does not do

There is no command-line program, no loading or saving of a whole
configuration file, and no running watcher: nothing here connects to a
Bitcoin node, an indexer or a Babylon node. The modules above are the pieces
such a service would be built from.
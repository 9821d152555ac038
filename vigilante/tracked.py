"""Thread-safe registry of delegations keyed by staking transaction hash."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass

from vigilante.btctx import Transaction, TxOut

DEFAULT_CHUNK_SIZE = 100


@dataclass
class TrackedDelegation:
    staking_tx: Transaction | None
    staking_output_idx: int
    unbonding_output: TxOut | None
    delegation_start_height: int
    in_progress: bool = False

    def clone(self) -> TrackedDelegation:
        """Deep copy, so the caller may modify it without touching the registry."""
        unbonding = None
        if self.unbonding_output is not None:
            unbonding = TxOut(
                value=self.unbonding_output.value,
                pk_script=bytes(self.unbonding_output.pk_script),
            )
        return TrackedDelegation(
            staking_tx=self.staking_tx.copy() if self.staking_tx is not None else None,
            staking_output_idx=self.staking_output_idx,
            unbonding_output=unbonding,
            delegation_start_height=self.delegation_start_height,
            in_progress=self.in_progress,
        )


class TrackedDelegations:
    """Delegations by staking tx hash; an entry may be empty (a bare hash)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mapping: dict[str, TrackedDelegation | None] = {}

    def __contains__(self, staking_tx_hash: object) -> bool:
        with self._lock:
            return staking_tx_hash in self._mapping

    def __len__(self) -> int:
        return self.count()

    def get_delegation(self, staking_tx_hash: str) -> TrackedDelegation | None:
        """The tracked delegation, or None when absent or tracked empty."""
        with self._lock:
            return self._mapping.get(staking_tx_hash)

    def get_delegations(self) -> list[TrackedDelegation | None]:
        with self._lock:
            return list(self._mapping.values())

    def iter_delegations(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[TrackedDelegation | None]:
        """Yield copies of all entries, taking the lock once per chunk."""
        if chunk_size <= 0:
            chunk_size = DEFAULT_CHUNK_SIZE
        processed: set[str] = set()
        while True:
            batch: list[TrackedDelegation | None] = []
            with self._lock:
                for key, delegation in self._mapping.items():
                    if key in processed:
                        continue
                    batch.append(delegation.clone() if delegation is not None else None)
                    processed.add(key)
                    if len(batch) >= chunk_size:
                        break
                map_size = len(self._mapping)
            yield from batch
            if len(processed) >= map_size:
                return

    def add_delegation(
        self,
        staking_tx: Transaction,
        staking_output_idx: int,
        unbonding_output: TxOut | None,
        delegation_start_height: int,
        should_update: bool = False,
    ) -> TrackedDelegation:
        delegation = TrackedDelegation(
            staking_tx=staking_tx,
            staking_output_idx=staking_output_idx,
            unbonding_output=unbonding_output,
            delegation_start_height=delegation_start_height,
        )
        staking_tx_hash = staking_tx.tx_hash()
        with self._lock:
            if staking_tx_hash in self._mapping and not should_update:
                raise ValueError(
                    f"delegation already tracked for staking tx hash {staking_tx_hash}"
                )
            self._mapping[staking_tx_hash] = delegation
        return delegation

    def add_empty_delegation(self, tx_hash: str) -> None:
        with self._lock:
            if tx_hash in self._mapping:
                raise ValueError(f"already tracked staking tx hash: {tx_hash}")
            self._mapping[tx_hash] = None

    def remove_delegation(self, staking_tx_hash: str) -> None:
        with self._lock:
            self._mapping.pop(staking_tx_hash, None)

    def has_delegation_changed(
        self, staking_tx_hash: str, delegation_start_height: int
    ) -> tuple[bool, bool]:
        """Return (changed, exists); a change is a different start height."""
        with self._lock:
            if staking_tx_hash not in self._mapping:
                return False, False
            existing = self._mapping[staking_tx_hash]
        if existing is None:
            return True, True
        return existing.delegation_start_height != delegation_start_height, True

    def update_activation(self, tx_hash: str, in_progress: bool) -> None:
        with self._lock:
            delegation = self._mapping.get(tx_hash)
            if delegation is None:
                raise KeyError(f"delegation with tx hash {tx_hash} not found")
            delegation.in_progress = in_progress

    def count(self) -> int:
        with self._lock:
            return len(self._mapping)
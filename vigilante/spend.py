"""Recognising unbonding transactions that spend a tracked staking output."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from typing import TypeVar

from vigilante.btctx import Transaction
from vigilante.tracked import TrackedDelegation

T = TypeVar("T", bound=Hashable)

_FIELD_PRIME = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_GROUP_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_SCHNORR_SIG_SIZE = 64
_MIN_WITNESS_ITEMS = 4


class NotUnbondingTxError(ValueError):
    """The spending transaction is not an unbonding transaction."""


def staking_tx_input_index(tx: Transaction, delegation: TrackedDelegation) -> int:
    """Index of the input of ``tx`` that spends the delegation's staking output."""
    staking_hash = delegation.staking_tx.tx_hash()
    for idx, txin in enumerate(tx.tx_in):
        outpoint = txin.previous_outpoint
        if outpoint.hash == staking_hash and outpoint.index == delegation.staking_output_idx:
            return idx
    raise NotUnbondingTxError(
        "transaction does not point to staking output. "
        f"expected hash:{staking_hash}, expected outputidx: {delegation.staking_output_idx}"
    )


def _parse_schnorr_signature(sig: bytes) -> bytes:
    if len(sig) != _SCHNORR_SIG_SIZE:
        raise NotUnbondingTxError(
            f"malformed signature: wrong size {len(sig)}, expected {_SCHNORR_SIG_SIZE}"
        )
    if int.from_bytes(sig[:32], "big") >= _FIELD_PRIME:
        raise NotUnbondingTxError("invalid signature: r >= field prime")
    if int.from_bytes(sig[32:], "big") >= _GROUP_ORDER:
        raise NotUnbondingTxError("invalid signature: s >= group order")
    return bytes(sig)


def parse_staker_signature(tx: Transaction, delegation: TrackedDelegation) -> bytes:
    """Return the staker's Schnorr signature from an unbonding transaction.

    Raises NotUnbondingTxError when ``tx`` is not the delegation's unbonding
    transaction.
    """
    if len(tx.tx_out) != 1:
        raise NotUnbondingTxError(
            "unbonding tx must have exactly one output. "
            f"Provided tx has {len(tx.tx_out)} outputs"
        )
    expected = delegation.unbonding_output
    output = tx.tx_out[0]
    if (
        expected is None
        or output.value != expected.value
        or bytes(output.pk_script) != bytes(expected.pk_script)
    ):
        raise NotUnbondingTxError(
            "unbonding tx must have output which matches unbonding output retrieved from Babylon"
        )
    try:
        input_idx = staking_tx_input_index(tx, delegation)
    except NotUnbondingTxError as exc:
        raise NotUnbondingTxError(f"unbonding tx does not spend staking output: {exc}") from exc

    witness = tx.tx_in[input_idx].witness
    # covenant signature, staker signature, script and control block at least
    if len(witness) < _MIN_WITNESS_ITEMS:
        raise RuntimeError(
            f"staking tx input witness has less than 4 elements for unbonding tx {tx.tx_hash()}"
        )
    return _parse_schnorr_signature(witness[-3])


def deduplicate(items: Iterable[T]) -> list[T]:
    """Items in their first-seen order, each once."""
    return list(dict.fromkeys(items))
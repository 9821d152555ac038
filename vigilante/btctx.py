"""Bitcoin transactions: the wire format, transaction hashes and deep copies."""

from __future__ import annotations

import copy as _copy
import hashlib
import struct
from dataclasses import dataclass, field

MAX_TX_IN_SEQUENCE = 0xFFFFFFFF
ZERO_HASH = "00" * 32

_WITNESS_MARKER = 0x00
_WITNESS_FLAG = 0x01


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"cannot encode negative length {value}")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def _encode_var_bytes(data: bytes) -> bytes:
    return _encode_varint(len(data)) + bytes(data)


def _hash_to_wire(hash_hex: str) -> bytes:
    raw = bytes.fromhex(hash_hex)
    if len(raw) != 32:
        raise ValueError(f"hash must be 32 bytes, got {len(raw)}")
    return raw[::-1]


class _Reader:
    """Sequential reader over a byte string that fails on truncation."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read(self, size: int) -> bytes:
        if size > self.remaining:
            raise ValueError("unexpected end of transaction data")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def _unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

    def u8(self) -> int:
        return self._unpack("<B")

    def u32(self) -> int:
        return self._unpack("<I")

    def i32(self) -> int:
        return self._unpack("<i")

    def i64(self) -> int:
        return self._unpack("<q")

    def varint(self) -> int:
        prefix = self.u8()
        if prefix < 0xFD:
            return prefix
        if prefix == 0xFD:
            value, minimum = self._unpack("<H"), 0xFD
        elif prefix == 0xFE:
            value, minimum = self._unpack("<I"), 0x10000
        else:
            value, minimum = self._unpack("<Q"), 0x100000000
        if value < minimum:
            raise ValueError("non-canonical varint encoding")
        return value

    def count(self) -> int:
        value = self.varint()
        if value > self.remaining:
            raise ValueError(f"item count {value} exceeds remaining data")
        return value

    def var_bytes(self) -> bytes:
        return self.read(self.count())


@dataclass
class OutPoint:
    """Reference to an output: transaction hash (display hex) and output index."""

    hash: str = ZERO_HASH
    index: int = 0


@dataclass
class TxIn:
    previous_outpoint: OutPoint = field(default_factory=OutPoint)
    signature_script: bytes = b""
    witness: list[bytes] = field(default_factory=list)
    sequence: int = MAX_TX_IN_SEQUENCE


@dataclass
class TxOut:
    value: int = 0
    pk_script: bytes = b""


@dataclass
class Transaction:
    version: int = 1
    tx_in: list[TxIn] = field(default_factory=list)
    tx_out: list[TxOut] = field(default_factory=list)
    lock_time: int = 0

    @property
    def has_witness(self) -> bool:
        return any(txin.witness for txin in self.tx_in)

    def _encode(self, include_witness: bool) -> bytes:
        with_witness = include_witness and self.has_witness
        parts = [struct.pack("<i", self.version)]
        if with_witness:
            parts.append(bytes([_WITNESS_MARKER, _WITNESS_FLAG]))
        parts.append(_encode_varint(len(self.tx_in)))
        for txin in self.tx_in:
            parts.append(_hash_to_wire(txin.previous_outpoint.hash))
            parts.append(struct.pack("<I", txin.previous_outpoint.index))
            parts.append(_encode_var_bytes(txin.signature_script))
            parts.append(struct.pack("<I", txin.sequence))
        parts.append(_encode_varint(len(self.tx_out)))
        for txout in self.tx_out:
            parts.append(struct.pack("<q", txout.value))
            parts.append(_encode_var_bytes(txout.pk_script))
        if with_witness:
            for txin in self.tx_in:
                parts.append(_encode_varint(len(txin.witness)))
                parts.extend(_encode_var_bytes(item) for item in txin.witness)
        parts.append(struct.pack("<I", self.lock_time))
        return b"".join(parts)

    def serialize(self) -> bytes:
        """Wire encoding, in the witness form when any input carries a witness."""
        return self._encode(include_witness=True)

    def tx_hash(self) -> str:
        """Transaction id: double SHA-256 of the witness-free encoding, display hex."""
        return _double_sha256(self._encode(include_witness=False))[::-1].hex()

    def copy(self) -> Transaction:
        return _copy.deepcopy(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> Transaction:
        reader = _Reader(data)
        version = reader.i32()
        input_count = reader.varint()
        has_witness = False
        if input_count == 0:
            flag = reader.u8()
            if flag != _WITNESS_FLAG:
                raise ValueError(
                    f"witness tx but flag byte is {flag:#04x} instead of 0x01"
                )
            has_witness = True
            input_count = reader.varint()
        if input_count > reader.remaining:
            raise ValueError(f"input count {input_count} exceeds remaining data")

        inputs = []
        for _ in range(input_count):
            prev_hash = reader.read(32)[::-1].hex()
            prev_index = reader.u32()
            script = reader.var_bytes()
            sequence = reader.u32()
            inputs.append(
                TxIn(
                    previous_outpoint=OutPoint(hash=prev_hash, index=prev_index),
                    signature_script=script,
                    sequence=sequence,
                )
            )

        outputs = []
        for _ in range(reader.count()):
            value = reader.i64()
            outputs.append(TxOut(value=value, pk_script=reader.var_bytes()))

        if has_witness:
            for txin in inputs:
                txin.witness = [reader.var_bytes() for _ in range(reader.count())]

        lock_time = reader.u32()
        if reader.remaining:
            raise ValueError(f"{reader.remaining} trailing bytes after transaction")
        return cls(version=version, tx_in=inputs, tx_out=outputs, lock_time=lock_time)

    @classmethod
    def from_hex(cls, hex_str: str) -> Transaction:
        return cls.from_bytes(bytes.fromhex(hex_str))
"""
Deterministic canonical encoding primitives.

Addresses are 20-byte EVM-style accounts, canonicalized to their EIP-55
checksum form. Hashing is keccak-256, as on the chain the pair stubs target.
"""

from __future__ import annotations

import json
import re
from typing import Any

from eth_utils import is_hex_address, keccak, to_checksum_address


ADDRESS_BYTES = 20
ADDRESS_BITS = ADDRESS_BYTES * 8

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]*$")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def bounded_json_utf8_size(value: Any, *, max_bytes: int, max_depth: int = 16) -> int:
    """
    Upper bound on `canonical_json_bytes(value)` size, computed without rendering.

    Raises:
        ValueError: As soon as the running bound exceeds `max_bytes` or nesting exceeds `max_depth`
        TypeError: For values canonical JSON rejects
    """
    if not isinstance(max_bytes, int) or isinstance(max_bytes, bool) or max_bytes <= 0:
        raise ValueError("max_bytes must be a positive int")

    def _check(n: int) -> int:
        if n > max_bytes:
            raise ValueError("json size exceeds max_bytes")
        return n

    def _size_str(s: str) -> int:
        # Quotes + UTF-8 bytes, with \u00XX as the worst-case escape per char.
        return _check(2 + sum(6 if ord(ch) < 0x20 or ch in '"\\' else len(ch.encode("utf-8", "surrogatepass")) for ch in s))

    def _size(v: Any, depth: int) -> int:
        if depth <= 0:
            raise ValueError("json nesting exceeds max_depth")
        if isinstance(v, float):
            raise TypeError("floats are not allowed in canonical encoding")
        if v is None or v is True:
            return 4
        if v is False:
            return 5
        if isinstance(v, int):
            # digits(n) <= floor(bits * log10(2)) + 1
            return _check((abs(v).bit_length() * 30103) // 100000 + 1 + (1 if v < 0 else 0))
        if isinstance(v, str):
            return _size_str(v)
        if isinstance(v, (list, tuple)):
            total = 2 + max(len(v) - 1, 0)
            for item in v:
                total = _check(total + _size(item, depth - 1))
            return total
        if isinstance(v, dict):
            total = 2 + max(len(v) - 1, 0)
            for k, item in v.items():
                if not isinstance(k, str):
                    raise TypeError("dict keys must be str for canonical encoding")
                total = _check(total + _size_str(k) + 1 + _size(item, depth - 1))
            return total
        raise TypeError(f"unsupported type for canonical encoding: {type(v)}")

    return _check(_size(value, max_depth))


def keccak256(data: bytes) -> bytes:
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("data must be bytes")
    return keccak(bytes(data))


def keccak256_hex(data: bytes) -> str:
    return "0x" + keccak256(data).hex()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"robotswap:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def canonical_address(value: Any, *, name: str = "address") -> str:
    """
    Canonicalize an account address to its checksummed 0x form.

    Accepts 0x-prefixed hex strings (any case) and 20-byte `bytes`.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_BYTES:
            raise ValueError(f"{name} must be {ADDRESS_BYTES} bytes")
        return to_checksum_address(bytes(value))
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    s = value.strip()
    if not is_hex_address(s):
        raise ValueError(f"{name} must be a 0x-prefixed {ADDRESS_BYTES}-byte hex string")
    return to_checksum_address(s.lower())


def address_to_bytes(address: str) -> bytes:
    return bytes.fromhex(canonical_address(address)[2:])


def address_to_int(address: str) -> int:
    return int.from_bytes(address_to_bytes(address), "big")


def int_to_address(value: int) -> str:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError("value must be an int")
    if not (0 <= value < (1 << ADDRESS_BITS)):
        raise ValueError(f"value does not fit in {ADDRESS_BITS} bits")
    return to_checksum_address(value.to_bytes(ADDRESS_BYTES, "big"))


def uint_to_hex(value: int, *, nbytes: int = 32) -> str:
    """Fixed-width lowercase 0x hex for unsigned words."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"value must be a non-negative int, got {value!r}")
    if value >= (1 << (8 * nbytes)):
        raise ValueError(f"value does not fit in {nbytes} bytes")
    return "0x" + value.to_bytes(nbytes, "big").hex()


def parse_uint(value: Any, *, name: str) -> int:
    """
    Parse an unsigned integer from a JSON value.

    Accepts ints, decimal strings and 0x-prefixed hex strings (uint256 words do not
    survive JSON number round-trips in many clients).
    """
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if isinstance(value, int):
        out = value
    elif isinstance(value, str):
        s = value.strip()
        if s.lower().startswith("0x"):
            body = s[2:]
            if not body or not _HEX_CHARS_RE.fullmatch(body):
                raise ValueError(f"{name} must be valid hex")
            out = int(body, 16)
        elif s.isascii() and s.isdigit():
            out = int(s)
        else:
            raise ValueError(f"{name} must be a decimal or 0x-hex string")
    else:
        raise TypeError(f"{name} must be an int or string")
    if out < 0:
        raise ValueError(f"{name} must be non-negative")
    return out

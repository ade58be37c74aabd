"""Utility functions for the Time Tomb client."""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.types import ChecksumAddress

from .constants import TOKEN_DECIMALS
from .exceptions import ValidationError

UINT256_MAX = 2**256 - 1


def to_token_units(value: float | Decimal | int, decimals: int = TOKEN_DECIMALS) -> int:
    """Convert a whole-token amount to its integer on-chain representation."""
    if value < 0:
        raise ValidationError("Value cannot be negative", field="value", value=value)

    if isinstance(value, float | int):
        value = Decimal(str(value))

    multiplier = Decimal(10**decimals)
    units = int(value * multiplier)

    if units > UINT256_MAX:
        raise ValidationError("Value exceeds uint256 maximum", field="value", value=value)

    return units


def from_token_units(units: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Convert on-chain integer units to a whole-token Decimal."""
    divisor = Decimal(10**decimals)
    return Decimal(units) / divisor


def checksum(address: str, *, field: str = "address") -> ChecksumAddress:
    """Checksum an address, raising ValidationError on malformed input."""
    try:
        return Web3.to_checksum_address(address)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid address for {field}",
            field=field,
            value=address,
            details={"error": str(exc)},
        ) from exc


def truncate_address(address: str, start: int = 6, end: int = 4) -> str:
    """Shorten an address to ``0x1234...abcd`` form."""
    if not address:
        return ""
    if len(address) <= start + end:
        return address
    return f"{address[:start]}...{address[-end:]}"


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt


def tx_hash_hex(tx_hash: Any) -> str:
    """Normalise a transaction hash returned by a wallet or provider."""
    if isinstance(tx_hash, bytes | bytearray | HexBytes):
        return HexBytes(tx_hash).to_0x_hex()
    value = str(tx_hash)
    return value if value.startswith("0x") else f"0x{value}"

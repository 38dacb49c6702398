"""
Utility functions for the Yafa bridge toolkit.
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from web3 import Web3


def parse_ether(amount: Union[str, int, float, Decimal]) -> int:
    """
    Convert an amount in ETH to wei.

    Args:
        amount: Amount in ETH, e.g. "0.1"

    Returns:
        Amount in wei

    Raises:
        ValueError: If the amount is not a finite non-negative number
    """
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid ETH amount: {amount!r}")

    if not value.is_finite():
        raise ValueError(f"Invalid ETH amount: {amount!r}")
    if value < 0:
        raise ValueError(f"ETH amount must not be negative: {amount!r}")

    return int(Web3.to_wei(value, "ether"))


def format_ether(wei: int) -> str:
    """Render a wei amount in ETH without exponent notation (2.5 ETH -> "2.5")."""
    value = Web3.from_wei(int(wei), "ether")
    return format(Decimal(value), "f")


def to_hex(data: Union[bytes, bytearray, str]) -> str:
    """Return a 0x-prefixed hex string for bytes or an existing hex string."""
    if isinstance(data, str):
        return data if data.startswith("0x") else "0x" + data
    return "0x" + bytes(data).hex()


def strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value

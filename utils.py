import re
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from errors import InvalidAddress

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def is_valid_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address.strip())) if isinstance(address, str) else False


def validate_address(address: str) -> str:
    """Return the canonical (lower-cased) form of an EVM address or raise InvalidAddress."""
    if not is_valid_address(address):
        raise InvalidAddress(str(address))
    return address.strip().lower()


def normalize_private_key(private_key: str) -> Optional[str]:
    """0x-prefixed 64 hex char key, or None if the input is not a 32-byte hex key."""
    key = private_key.strip()
    if key.startswith("0x"):
        key = key[2:]
    if len(key) != 64 or not _HEX_RE.match(key):
        return None
    return f"0x{key}"


def to_units(raw: int | str, decimals: int = 18) -> Decimal:
    """Integer on-chain amount -> exact human-readable Decimal (no context rounding)."""
    sign, digits, exponent = Decimal(int(raw)).as_tuple()
    return Decimal((sign, digits, exponent - decimals))


def round_down(amount: Decimal, places: int) -> Decimal:
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def short_address(address: str, chars: int = 6) -> str:
    """Truncate: 0x1234...abcd"""
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def format_amount(amount: Decimal | float, decimals: int = 6) -> str:
    value = Decimal(str(amount))
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_percent(ratio: float, decimals: int = 1) -> str:
    return f"{ratio * 100:.{decimals}f}%"

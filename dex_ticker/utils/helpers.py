import math
from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from web3 import Web3

# 2^96, the Q64.96 scaling of sqrtPriceX96
Q96 = 79228162514264337593543950336
MAX_FRACTION_DIGITS = 18

# Enough digits for (2^160 / 2^96)^2 to stay exact
_PRICE_PRECISION = 400


def sqrt_price_to_price(sqrt_price_x96: int) -> Decimal:
    """
    Calculate price from sqrtPriceX96 (Uniswap V3 / Algebra style)
    Price = (sqrtPriceX96 / 2^96)^2, token1 per token0 in raw units
    """
    with localcontext() as ctx:
        ctx.prec = _PRICE_PRECISION
        sqrt_price = Decimal(sqrt_price_x96) / Decimal(Q96)
        return sqrt_price * sqrt_price


def reserves_to_sqrt_price(reserve0: int, reserve1: int) -> int:
    """
    Express a V2 reserve ratio as sqrtPriceX96 so both dialects report price the same way
    sqrtPriceX96 = floor(sqrt(reserve1 * 2^192 / reserve0))
    """
    if reserve0 == 0:
        return 0
    return math.isqrt((reserve1 << 192) // reserve0)


def format_decimal(value: Union[int, Decimal, str]) -> str:
    """
    Format a number with at most 18 decimals (truncated, not rounded)
    and without trailing zeros. Scientific notation is returned as-is.
    """
    text = str(value)
    if "e" in text or "E" in text:
        return text

    if "." in text:
        point = text.index(".")
        text = text[:point + 1 + MAX_FRACTION_DIGITS].rstrip("0").rstrip(".")

    return text or "0"


def parse_decimal(text: str) -> Decimal:
    """
    Parse a decimal string, returning zero for anything unparsable
    """
    try:
        value = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return value if value.is_finite() else Decimal(0)


def hex_to_bytes(value: Union[str, bytes, bytearray, memoryview]) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string"""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return Web3.to_bytes(hexstr=value)


def normalize_address(address: Union[str, bytes]) -> str:
    """
    Normalize an address to lowercase 0x-prefixed hex
    """
    if isinstance(address, (bytes, bytearray, memoryview)):
        return "0x" + bytes(address).hex()
    address = address.strip().lower()
    if not address.startswith("0x"):
        address = f"0x{address}"
    return address


def is_valid_address(address: str) -> bool:
    """
    Check if address is valid Ethereum address
    """
    return Web3.is_address(address)

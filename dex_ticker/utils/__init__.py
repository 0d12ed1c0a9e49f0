from .evm import *
from .abi import *
from .helpers import *

__all__ = [
    "word_at", "int256_from_word", "int256_to_word", "uint256_from_word",
    "uint160_from_word", "uint112_from_word", "address_from_word",
    "WORD_SIZE", "ZERO_ADDRESS",
    "PoolDialect", "EventKind", "classify_topic", "V2_EVENTS", "V3_EVENTS",
    "PANCAKESWAP_V3_EVENTS", "EVENT_TEXT_SIGNATURES", "ERC20_ABI",
    "Q96", "sqrt_price_to_price", "reserves_to_sqrt_price", "format_decimal",
    "parse_decimal", "hex_to_bytes", "normalize_address", "is_valid_address"
]

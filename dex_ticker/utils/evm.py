"""
EVM word decoding

Event payloads are sequences of 32-byte big-endian words. Every decoder here is
fail-soft: a slice that is not exactly one word long decodes to zero.
"""
from typing import Union

WORD_SIZE = 32
ADDRESS_SIZE = 20
UINT112_SIZE = 14

ZERO_ADDRESS = "0x" + "00" * ADDRESS_SIZE

BytesLike = Union[bytes, bytearray, memoryview]


def word_at(data: BytesLike, index: int) -> bytes:
    """
    Return the index-th word of a payload.
    A payload that ends early yields a short slice, which decodes to zero.
    """
    start = index * WORD_SIZE
    return bytes(data[start:start + WORD_SIZE])


def int256_from_word(word: BytesLike) -> int:
    """Signed 256-bit integer, two's complement over all 32 bytes"""
    if len(word) != WORD_SIZE:
        return 0
    return int.from_bytes(word, "big", signed=True)


def int256_to_word(value: int) -> bytes:
    """Encode a signed 256-bit integer back into a word"""
    return value.to_bytes(WORD_SIZE, "big", signed=True)


def uint256_from_word(word: BytesLike) -> int:
    if len(word) != WORD_SIZE:
        return 0
    return int.from_bytes(word, "big")


def uint160_from_word(word: BytesLike) -> int:
    """
    Unsigned 160-bit value right-aligned in a word (low 20 bytes).
    Used for addresses and for sqrtPriceX96.
    """
    if len(word) != WORD_SIZE:
        return 0
    return int.from_bytes(word[WORD_SIZE - ADDRESS_SIZE:], "big")


def uint112_from_word(word: BytesLike) -> int:
    """Unsigned 112-bit value right-aligned in a word (V2 reserves)"""
    if len(word) != WORD_SIZE:
        return 0
    return int.from_bytes(word[WORD_SIZE - UINT112_SIZE:], "big")


def address_from_word(word: BytesLike) -> str:
    """Lowercase 0x-prefixed address from the low 20 bytes of a word"""
    if len(word) != WORD_SIZE:
        return ZERO_ADDRESS
    return "0x" + bytes(word[WORD_SIZE - ADDRESS_SIZE:]).hex()

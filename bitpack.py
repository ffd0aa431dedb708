"""
Bit packing for encoded Huffman output

Layout: the bit string is prefixed with (padding - 1) zero bits and a single
one bit, where padding = 8 - len(bits) % 8 (1..8, never 0), then packed MSB
first. Reading from the front, the first 1 marks where the data begins.
"""

import logging
from typing import Sequence, Union

from huffman_errors import InvalidInput, IOFailure

logger = logging.getLogger(__name__)

BYTE_BITS = 8

Bits = Union[str, Sequence[int]]


def pack_bits(bits: Bits) -> bytes:
    """
    Converts a string of '0'/'1' (or a sequence of 0/1 ints) into bytes with
    the padding sentinel in front
    """
    padding = BYTE_BITS - (len(bits) % BYTE_BITS)

    out = bytearray()
    acc = 1 # the sentinel; the zero bits before it are implicit
    acc_bits = padding
    if acc_bits == BYTE_BITS:
        out.append(acc)
        acc = 0
        acc_bits = 0

    for ch in bits:
        if ch == '1' or ch == 1:
            bit = 1
        elif ch == '0' or ch == 0:
            bit = 0
        else:
            raise InvalidInput(f"invalid character {ch!r} in bit string")
        acc = (acc << 1) | bit
        acc_bits += 1
        if acc_bits == BYTE_BITS:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    # padding + len(bits) is a multiple of 8, so nothing is left in acc
    logger.debug("packed %d bits (+%d padding) into %d bytes", len(bits), padding, len(out))
    return bytes(out)


def unpack_bits(packed: bytes) -> str:
    """Inverse of pack_bits: returns the data bits after the padding sentinel."""
    bit_string = "".join(format(byte, "08b") for byte in packed)

    # Look for the first 1 within the first byte
    for i in range(min(BYTE_BITS, len(bit_string))):
        if bit_string[i] == '1':
            return bit_string[i + 1:]

    return bit_string[BYTE_BITS:]


def write_bit_string(filename, bit_string: Bits) -> int:
    """
    Packs `bit_string` and writes it to `filename`; returns the byte count.
    Nothing is written when the bit string is invalid.
    """
    packed = pack_bits(bit_string)
    try:
        with open(filename, "wb") as f:
            f.write(packed)
    except OSError as exc:
        raise IOFailure(f"error writing {filename}: {exc}") from exc
    return len(packed)


def read_bit_string(filename) -> str:
    try:
        with open(filename, "rb") as f:
            packed = f.read()
    except OSError as exc:
        raise IOFailure(f"error reading {filename}: {exc}") from exc
    return unpack_bits(packed)

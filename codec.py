"""
Huffman codec: text -> frequency table -> tree -> encoding table -> packed bytes,
and packed bytes -> bits -> tree walk -> text.

The packed format carries no tree, so decoding needs the tree built while
encoding (or one rebuilt from the same text).

How to run:
  python codec.py encode input.txt input.huff
  python codec.py decode input.huff output.txt --source input.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator

import huffman as huff
from bitpack import pack_bits, read_bit_string, unpack_bits, write_bit_string
from huffman_errors import HuffmanError, IOFailure

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


# Input source / output sink

def iter_symbols(filename, chunk_size: int = CHUNK_SIZE) -> Iterator[str]:
    """
    Lazily yields the characters of a text file. Newlines are passed through
    untranslated so the round trip is exact. Re-open by calling again.
    """
    try:
        with open(filename, "r", encoding="utf-8", newline="") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    return
                yield from chunk
    except (OSError, UnicodeDecodeError) as exc:
        raise IOFailure(f"error reading {filename}: {exc}") from exc


def write_symbols(filename, symbols: Iterable[str]) -> None:
    try:
        with open(filename, "w", encoding="utf-8", newline="") as f:
            f.write("".join(symbols))
    except OSError as exc:
        raise IOFailure(f"error writing {filename}: {exc}") from exc


# In-memory codec

@dataclass
class Encoded:
    packed: bytes
    root: huff.HuffmanNode
    table: huff.EncodingTable


def build_tree(symbols: Iterable[str]) -> huff.HuffmanNode:
    return huff.build_huffman_tree(huff.make_sorted_list(symbols))


def encode_text(text: str) -> Encoded:
    root = build_tree(text)
    table = huff.generate_huffman_codes(root)
    bits = huff.huffman_encode(text, table)
    return Encoded(pack_bits(bits), root, table)


def decode_text(packed: bytes, root: huff.HuffmanNode) -> str:
    return huff.huffman_decode(unpack_bits(packed), root)


# File codec

def encode_from_table(table: huff.EncodingTable, text_file, encoded_file) -> int:
    """
    Encodes `text_file` with an existing table and writes the packed bytes to
    `encoded_file`. Returns the number of bytes written.
    """
    bits = table.encode(iter_symbols(text_file))
    written = write_bit_string(encoded_file, bits)
    logger.info("encoded %s -> %s (%d bits, %d bytes)", text_file, encoded_file, len(bits), written)
    return written


def encode_file(text_file, encoded_file) -> huff.HuffmanNode:
    """Encodes `text_file` into `encoded_file` and returns the tree needed to decode it."""
    root = build_tree(iter_symbols(text_file))
    table = huff.generate_huffman_codes(root)
    encode_from_table(table, text_file, encoded_file)
    return root


def decode_file(encoded_file, root: huff.HuffmanNode, decoded_file) -> None:
    text = huff.huffman_decode(read_bit_string(encoded_file), root)
    write_symbols(decoded_file, text)
    logger.info("decoded %s -> %s (%d symbols)", encoded_file, decoded_file, len(text))


# Main

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Huffman encode/decode 7-bit text files.")
    ap.add_argument("--verbose", action="store_true", help="Log progress to stderr")
    sub = ap.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode a text file")
    enc.add_argument("text_file")
    enc.add_argument("encoded_file")

    dec = sub.add_parser("decode", help="Decode a file produced by 'encode'")
    dec.add_argument("encoded_file")
    dec.add_argument("decoded_file")
    dec.add_argument("--source", required=True,
                     help="Original text file; the tree is rebuilt from it")

    args = ap.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "encode":
            encode_file(args.text_file, args.encoded_file)
            print(f"Wrote {args.encoded_file}")
        else:
            root = build_tree(iter_symbols(args.source))
            decode_file(args.encoded_file, root, args.decoded_file)
            print(f"Wrote {args.decoded_file}")
    except HuffmanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

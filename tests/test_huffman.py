import math
import random

import pytest

import huffman as huff
from huffman_errors import CorruptedStream, EmptyAlphabet, InvalidInput


def leaves(root):
    return list(huff.iter_leaves(root))


def internal_nodes(root):
    out, stack = [], [root]
    while stack:
        node = stack.pop()
        if not node.is_leaf():
            out.append(node)
            stack.extend([node.left, node.right])
    return out


SAMPLES = [
    "abab",
    "aaaa",
    "hello world",
    "the quick brown fox jumps over the lazy dog\n",
    "aaaaaaaabbbbccd",
    "".join(chr(i) for i in range(128)),
]


# Frequency table

def test_sorted_list_ascending_with_ordinal_tiebreak():
    sl = huff.make_sorted_list("cbaab")
    assert [ws.symbol for ws in sl] == ["c", "a", "b"]
    assert [ws.weight for ws in sl] == [0.2, 0.4, 0.4]


def test_sorted_list_single_symbol_gets_neighbour():
    sl = huff.make_sorted_list("aaaa")
    assert sl == [huff.WeightedSymbol("b", 0.0), huff.WeightedSymbol("a", 1.0)]


def test_sorted_list_neighbour_wraps_at_last_ordinal():
    sl = huff.make_sorted_list(chr(127) * 3)
    assert sl[0] == huff.WeightedSymbol(chr(0), 0.0)
    assert sl[1].symbol == chr(127)


def test_sorted_list_empty_input():
    with pytest.raises(EmptyAlphabet):
        huff.make_sorted_list("")


def test_sorted_list_rejects_symbol_outside_alphabet():
    with pytest.raises(InvalidInput):
        huff.make_sorted_list("café")


# Tree builder

@pytest.mark.parametrize("text", SAMPLES)
def test_tree_validity(text):
    root = huff.build_huffman_tree(huff.make_sorted_list(text))
    ls = leaves(root)
    assert math.isclose(sum(leaf.weight for leaf in ls), 1.0)
    assert all(leaf.symbol is not None for leaf in ls)
    assert len({leaf.symbol for leaf in ls}) == len(ls)
    for node in internal_nodes(root):
        assert node.symbol is None
        assert node.left is not None and node.right is not None
        assert math.isclose(node.weight, node.left.weight + node.right.weight)


def test_two_entries_give_root_with_two_leaves():
    root = huff.build_huffman_tree(huff.make_sorted_list("abab"))
    assert root.left.is_leaf() and root.right.is_leaf()
    assert (root.left.symbol, root.right.symbol) == ("a", "b")


def test_tie_prefers_source_queue():
    # a, b, c, d all 0.25: (a,b) merge first, then (c,d) from source beats (ab)
    root = huff.build_huffman_tree(huff.make_sorted_list("abcd"))
    assert [n.symbol for n in (root.left.left, root.left.right)] == ["a", "b"]
    assert [n.symbol for n in (root.right.left, root.right.right)] == ["c", "d"]


def test_builder_needs_two_entries():
    with pytest.raises(ValueError):
        huff.build_huffman_tree([huff.WeightedSymbol("a", 1.0)])


def test_two_queue_matches_heap_path_length():
    rng = random.Random(7)
    for _ in range(20):
        text = "".join(rng.choices("abcdefghijklmnop", weights=range(1, 17), k=500))
        sl = huff.make_sorted_list(text)
        a = huff.weighted_path_length(huff.build_huffman_tree(sl))
        b = huff.weighted_path_length(huff.build_huffman_tree_heap(sl))
        assert math.isclose(a, b)


def test_skewed_tree_is_deep():
    # Fibonacci counts give a maximally skewed tree
    counts = [1, 1, 2, 3, 5, 8, 13, 21, 34, 55]
    text = "".join(chr(65 + i) * c for i, c in enumerate(counts))
    table = huff.generate_huffman_codes(huff.build_huffman_tree(huff.make_sorted_list(text)))
    assert max(len(c) for c in table.values()) == len(counts) - 1


# Encoding table

@pytest.mark.parametrize("text", SAMPLES)
def test_codes_are_prefix_free(text):
    table = huff.generate_huffman_codes(huff.build_huffman_tree(huff.make_sorted_list(text)))
    assert table.is_prefix_free()
    codes = list(table.values())
    for i, a in enumerate(codes):
        for j, b in enumerate(codes):
            if i != j:
                assert not b.startswith(a)


def test_single_symbol_gets_one_bit_code():
    root = huff.build_huffman_tree(huff.make_sorted_list("aaaa"))
    assert len(leaves(root)) == 2
    table = huff.generate_huffman_codes(root)
    assert table["a"] == "1"
    assert table["b"] == "0"


def test_two_symbols_get_one_bit_codes():
    table = huff.generate_huffman_codes(huff.build_huffman_tree(huff.make_sorted_list("abab")))
    assert dict(table) == {"a": "0", "b": "1"}


def test_unpopulated_symbol_has_no_code():
    table = huff.generate_huffman_codes(huff.build_huffman_tree(huff.make_sorted_list("abab")))
    assert table.get("z") is None
    assert "z" not in table
    assert table.encode("azb") == "01"


def test_find_code_missing_symbol():
    root = huff.build_huffman_tree(huff.make_sorted_list("abc"))
    assert huff.find_code(root, "q") is None


def test_average_length_matches_path_length():
    text = "mississippi river"
    sl = huff.make_sorted_list(text)
    root = huff.build_huffman_tree(sl)
    table = huff.generate_huffman_codes(root)
    weights = {ws.symbol: ws.weight for ws in sl}
    assert math.isclose(table.average_length(weights), huff.weighted_path_length(root))


# Encode / decode

@pytest.mark.parametrize("text", SAMPLES)
def test_bits_round_trip(text):
    root = huff.build_huffman_tree(huff.make_sorted_list(text))
    table = huff.generate_huffman_codes(root)
    bits = huff.huffman_encode(text, table)
    assert huff.huffman_decode(bits, root) == text


def test_encode_accepts_plain_dict():
    assert huff.huffman_encode("abba", {"a": "0", "b": "1"}) == "0110"


def test_decode_truncated_mid_code():
    root = huff.build_huffman_tree(huff.make_sorted_list("abcd"))
    with pytest.raises(CorruptedStream):
        huff.huffman_decode("001", root)


def test_decode_rejects_non_bits():
    root = huff.build_huffman_tree(huff.make_sorted_list("abab"))
    with pytest.raises(CorruptedStream):
        huff.huffman_decode("0x1", root)


def test_decode_empty_bits():
    root = huff.build_huffman_tree(huff.make_sorted_list("abab"))
    assert huff.huffman_decode("", root) == ""

import heapq
import itertools
import logging
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from huffman_errors import CorruptedStream, EmptyAlphabet, InvalidInput

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 128 # 7-bit ASCII


@dataclass(frozen=True)
class WeightedSymbol:
    symbol: Optional[str] # None for internal nodes
    weight: float # probability of occurrence in [0, 1]


class HuffmanNode: # Node for Huffman tree
    def __init__(self, data: WeightedSymbol, left=None, right=None):
        self.data = data
        self.left = left
        self.right = right

    @property
    def symbol(self) -> Optional[str]:
        return self.data.symbol

    @property
    def weight(self) -> float:
        return self.data.weight

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        return f"HuffmanNode({self.symbol!r}, {self.weight:.6g})"


def make_sorted_list(symbols: Iterable[str]) -> List[WeightedSymbol]:
    """
    Frequency table: one entry per observed symbol, weight = count / total,
    sorted ascending by weight (ties keep ordinal order, sort is stable)

    A lone symbol gets a zero-weight neighbour (next ordinal, wrapping to 0)
    so the tree always has two leaves
    """
    counter = [0] * ALPHABET_SIZE
    total = 0
    for ch in symbols:
        index = ord(ch)
        if index >= ALPHABET_SIZE:
            raise InvalidInput(f"symbol {ch!r} is outside the {ALPHABET_SIZE}-symbol alphabet")
        counter[index] += 1
        total += 1

    if total == 0:
        raise EmptyAlphabet("cannot build a frequency table from empty input")

    freq = [WeightedSymbol(chr(i), counter[i] / total) for i in range(ALPHABET_SIZE) if counter[i] > 0]

    if len(freq) == 1:
        index = (ord(freq[0].symbol) + 1) % ALPHABET_SIZE
        freq.append(WeightedSymbol(chr(index), 0.0))

    freq.sort(key=lambda ws: ws.weight)
    logger.debug("frequency table: %d symbols over %d characters", len(freq), total)
    return freq


def _take_lighter(source: deque, target: deque) -> HuffmanNode:
    # ties go to source
    if not target:
        return source.popleft()
    if not source:
        return target.popleft()
    if source[0].weight <= target[0].weight:
        return source.popleft()
    return target.popleft()


def build_huffman_tree(sorted_list: List[WeightedSymbol]) -> HuffmanNode:
    """
    Two-queue Huffman construction. `sorted_list` must be ascending by weight
    and hold at least two entries. Leaves wait in `source`; merged nodes are
    appended to `target`, which stays non-decreasing in weight, so the two
    fronts are always the two lightest candidates.
    """
    if len(sorted_list) < 2:
        raise ValueError("a Huffman tree needs at least two weighted symbols")

    source = deque(HuffmanNode(ws) for ws in sorted_list)
    target: deque = deque()

    while source or len(target) != 1:
        left = _take_lighter(source, target)
        right = _take_lighter(source, target)
        merged = HuffmanNode(WeightedSymbol(None, left.weight + right.weight), left, right)
        target.append(merged)

    root = target[0]
    logger.debug("built two-queue tree from %d leaves", len(sorted_list))
    return root


def build_huffman_tree_heap(sorted_list: List[WeightedSymbol]) -> HuffmanNode:
    """Reference builder using a binary heap; ties fall back to insertion order."""
    if len(sorted_list) < 2:
        raise ValueError("a Huffman tree needs at least two weighted symbols")

    seq = itertools.count()
    priority_queue = [(ws.weight, next(seq), HuffmanNode(ws)) for ws in sorted_list]
    heapq.heapify(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        merged = HuffmanNode(WeightedSymbol(None, left.weight + right.weight), left, right)
        heapq.heappush(priority_queue, (merged.weight, next(seq), merged))

    return priority_queue[0][2] # root of the tree


def iter_leaves(root: HuffmanNode) -> Iterator[HuffmanNode]:
    # in-order, explicit stack
    stack: List[HuffmanNode] = []
    node = root
    while node is not None or stack:
        while node is not None:
            stack.append(node)
            node = node.left
        node = stack.pop()
        if node.is_leaf():
            yield node
        node = node.right


def find_code(root: HuffmanNode, symbol: str) -> Optional[str]:
    """Depth-first search for `symbol`; returns its root-to-leaf path or None."""
    stack = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf():
            if node.symbol == symbol:
                return path
            continue
        # right pushed first so the left subtree is searched first
        if node.right is not None:
            stack.append((node.right, path + "1"))
        if node.left is not None:
            stack.append((node.left, path + "0"))
    return None


class EncodingTable(Mapping):
    """Read-only symbol -> code mapping; codes are strings of '0' and '1'."""

    def __init__(self, codes: Dict[str, str]):
        self._codes = dict(codes)

    def __getitem__(self, symbol: str) -> str:
        return self._codes[symbol]

    def __iter__(self):
        return iter(self._codes)

    def __len__(self):
        return len(self._codes)

    def __repr__(self):
        return f"EncodingTable({self._codes!r})"

    def encode(self, symbols: Iterable[str]) -> str:
        # symbols without a code are skipped
        return "".join(self._codes.get(ch, "") for ch in symbols)

    def is_prefix_free(self) -> bool:
        # after sorting, a prefix always sorts directly before some code it prefixes
        codes = sorted(self._codes.values())
        return all(not b.startswith(a) for a, b in zip(codes, codes[1:]))

    def average_length(self, weights: Mapping) -> float:
        return sum(weights.get(sym, 0.0) * len(code) for sym, code in self._codes.items())


def generate_huffman_codes(root: HuffmanNode) -> EncodingTable: # root: root of the Huffman tree
    codes = {}
    for leaf in iter_leaves(root):
        code = find_code(root, leaf.symbol)
        if code is not None:
            codes[leaf.symbol] = code
    logger.debug("encoding table: %d codes, longest %d bits",
                 len(codes), max((len(c) for c in codes.values()), default=0))
    return EncodingTable(codes)


def huffman_encode(text: Iterable[str], code_map: Mapping) -> str: # text: symbols to encode, code_map: symbol -> Huffman code
    if isinstance(code_map, EncodingTable):
        return code_map.encode(text)
    return "".join(code_map.get(ch, "") for ch in text)


def huffman_decode(bitstring: str, root: HuffmanNode) -> str: # bitstring: the encoded string of '0's and '1's, root: root of the Huffman tree
    decoded = []
    node = root
    for bit in bitstring:
        if bit == "0":
            node = node.left
        elif bit == "1":
            node = node.right
        else:
            raise CorruptedStream(f"unexpected character {bit!r} in bit string")
        if node is None:
            raise CorruptedStream("bit path leaves the tree")

        if node.is_leaf(): # reached a leaf
            decoded.append(node.symbol)
            node = root # reset to the root for the next symbol

    if node is not root:
        raise CorruptedStream("bit string ends in the middle of a code")
    return "".join(decoded)


def weighted_path_length(root: HuffmanNode) -> float:
    """Sum of weight * depth over leaves, i.e. the expected code length."""
    total = 0.0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node.is_leaf():
            total += node.weight * depth
        else:
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
    return total

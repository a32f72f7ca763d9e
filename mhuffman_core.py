# filename: mhuffman_core.py

import heapq
import itertools
import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from mhuffman_errors import ConfigurationError

logger = logging.getLogger(__name__)

# Digit alphabet for rendered codes; index i is the character for branch i.
DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
MAX_ARITY = len(DIGITS)


@dataclass(eq=False)
class Leaf:
    symbol: Any
    weight: int
    order: int = 0

    kind = "leaf"

    @property
    def children(self):
        return ()


@dataclass(eq=False)
class Dummy:
    # Zero-weight padding leaf, never decodable.
    index: int
    order: int = 0
    weight: int = field(default=0, init=False)

    kind = "dummy"

    @property
    def children(self):
        return ()


@dataclass(eq=False)
class Internal:
    weight: int
    children: Tuple[Any, ...]
    order: int = 0

    kind = "internal"


TreeNode = Union[Leaf, Dummy, Internal]


def count_frequencies(symbols: Iterable[Any]) -> Dict[Any, int]:
    return dict(Counter(symbols))


def validate_arity(m) -> int:
    if isinstance(m, bool) or not isinstance(m, int):
        raise ConfigurationError(f"branching factor must be an integer, got {m!r}")
    if m < 2:
        raise ConfigurationError(f"branching factor must be at least 2, got {m}")
    if m > MAX_ARITY:
        raise ConfigurationError(
            f"branching factor {m} has no digit alphabet (max {MAX_ARITY})"
        )
    return m


def required_padding(n: int, m: int) -> int:
    """Number of zero-weight leaves needed so that (n + padding - 1) % (m - 1) == 0."""
    validate_arity(m)
    remainder = (n - 1) % (m - 1)
    if remainder == 0:
        return 0
    return (m - 1) - remainder


class PriorityQueue:
    """Min-queue of tree nodes keyed on (weight, order).

    ``order`` is assigned once when a node is created and is unique within a
    build, so the extraction order is a strict total order and never falls
    back to comparing the nodes themselves.
    """

    def __init__(self):
        self._heap = []

    def insert(self, node: TreeNode) -> None:
        heapq.heappush(self._heap, (node.weight, node.order, node))

    def extract_min(self) -> TreeNode:
        if not self._heap:
            raise IndexError("extract_min from an empty queue")
        return heapq.heappop(self._heap)[2]

    def size(self) -> int:
        return len(self._heap)

    def __len__(self):
        return len(self._heap)

    def peek_all(self) -> List[TreeNode]:
        return [entry[2] for entry in sorted(self._heap, key=lambda e: e[:2])]


def build_tree(frequencies: Mapping, m: int) -> Optional[TreeNode]:
    validate_arity(m)
    if not frequencies:
        return None

    # Leaves are numbered in symbol order, dummies after them, internal nodes
    # after that in creation order.
    counter = itertools.count()
    leaves = []
    for symbol in sorted(frequencies):
        weight = frequencies[symbol]
        if weight < 1:
            raise ValueError(f"frequency of {symbol!r} must be >= 1, got {weight}")
        leaves.append(Leaf(symbol, weight, next(counter)))

    if len(leaves) == 1:
        return leaves[0]

    dummies_needed = required_padding(len(leaves), m)
    logger.debug("building %d-ary tree: %d symbols, %d dummies",
                 m, len(leaves), dummies_needed)

    queue = PriorityQueue()
    for leaf in leaves:
        queue.insert(leaf)
    for i in range(dummies_needed):
        queue.insert(Dummy(i, next(counter)))

    while queue.size() > 1:
        taken = [queue.extract_min() for _ in range(min(m, queue.size()))]
        merged = Internal(sum(node.weight for node in taken), tuple(taken), next(counter))
        logger.debug("merged %d nodes into weight %d", len(taken), merged.weight)
        queue.insert(merged)

    return queue.extract_min()


class CodeTable(Mapping):
    """Immutable symbol -> digit-string mapping for one branching factor."""

    def __init__(self, codes, arity):
        self._codes = dict(codes)
        self.arity = arity

    def __getitem__(self, symbol):
        return self._codes[symbol]

    def __iter__(self):
        return iter(self._codes)

    def __len__(self):
        return len(self._codes)

    def __repr__(self):
        return f"CodeTable({self._codes!r}, arity={self.arity})"

    def pairs(self) -> List[Tuple[Any, str]]:
        return sorted(self._codes.items(), key=lambda item: (len(item[1]), item[1]))

    def is_prefix_free(self) -> bool:
        codes = sorted(self._codes.values())
        return all(not b.startswith(a) for a, b in zip(codes, codes[1:]))


def assign_codes(root: Optional[TreeNode], m: int) -> CodeTable:
    codes = {}

    def walk(node, prefix):
        if isinstance(node, Dummy):
            return
        if isinstance(node, Leaf):
            # A lone leaf root still needs a non-empty code.
            codes[node.symbol] = prefix or DIGITS[0]
            return
        for index, child in enumerate(node.children):
            walk(child, prefix + DIGITS[index])

    if root is not None:
        walk(root, "")
    return CodeTable(codes, m)


def tree_to_dict(node: Optional[TreeNode]) -> Optional[Dict[str, Any]]:
    if node is None:
        return None
    out = {"kind": node.kind, "weight": node.weight}
    if isinstance(node, Leaf):
        out["symbol"] = node.symbol
    elif isinstance(node, Dummy):
        out["index"] = node.index
    else:
        out["children"] = [tree_to_dict(child) for child in node.children]
    return out


class HuffmanLogic:
    def count_frequencies(self, data):
        return count_frequencies(data)

    def build_tree(self, frequencies, m):
        return build_tree(frequencies, m)

    def generate_codes(self, root, m):
        return assign_codes(root, m)

import os
import sys
import random
import pytest

# Add the project root to path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

import mhuffman_core as hc
from mhuffman_errors import ConfigurationError


def _leaves(node):
	if node.kind == "internal":
		out = []
		for child in node.children:
			out.extend(_leaves(child))
		return out
	return [node]


def _internals(node):
	if node.kind != "internal":
		return []
	out = [node]
	for child in node.children:
		out.extend(_internals(child))
	return out


def test_count_frequencies():
	assert hc.count_frequencies("aabbbccccc") == {"a": 2, "b": 3, "c": 5}
	assert hc.count_frequencies("") == {}
	assert hc.count_frequencies(b"\x00\x00\x01") == {0: 2, 1: 1}


def test_required_padding_known_values():
	assert hc.required_padding(4, 3) == 1
	assert hc.required_padding(3, 3) == 0
	assert hc.required_padding(2, 5) == 3
	assert hc.required_padding(7, 2) == 0


def test_required_padding_always_fills_tree():
	for m in range(2, 9):
		for n in range(2, 60):
			pad = hc.required_padding(n, m)
			assert 0 <= pad < m - 1
			assert (n + pad - 1) % (m - 1) == 0


@pytest.mark.parametrize("bad", [1, 0, -3, 2.5, "3", True, None, hc.MAX_ARITY + 1])
def test_invalid_arity_rejected(bad):
	with pytest.raises(ConfigurationError):
		hc.validate_arity(bad)
	with pytest.raises(ConfigurationError):
		hc.build_tree({"a": 1, "b": 1}, bad)


def test_invalid_arity_rejected_even_for_empty_input():
	with pytest.raises(ConfigurationError):
		hc.build_tree({}, 1)


def test_empty_frequencies_give_no_tree():
	assert hc.build_tree({}, 3) is None
	assert dict(hc.assign_codes(None, 3)) == {}


def test_single_symbol_is_a_lone_leaf():
	root = hc.build_tree({"a": 4}, 3)
	assert isinstance(root, hc.Leaf)
	assert root.weight == 4
	assert hc.assign_codes(root, 3) == {"a": "0"}


def test_zero_frequency_rejected():
	with pytest.raises(ValueError):
		hc.build_tree({"a": 0, "b": 1}, 2)


def test_binary_tree_known_example():
	root = hc.build_tree({"a": 2, "b": 3, "c": 5}, 2)
	assert root.weight == 10
	first, second = root.children
	assert isinstance(first, hc.Leaf) and first.symbol == "c"
	assert isinstance(second, hc.Internal)
	assert [child.symbol for child in second.children] == ["a", "b"]
	assert hc.assign_codes(root, 2) == {"c": "0", "a": "10", "b": "11"}


def test_ternary_padding_example():
	root = hc.build_tree({"a": 1, "b": 2, "c": 3, "d": 4}, 3)
	assert len(root.children) == 3
	dummies = [leaf for leaf in _leaves(root) if leaf.kind == "dummy"]
	assert len(dummies) == 1
	assert dummies[0].weight == 0
	codes = hc.assign_codes(root, 3)
	assert codes == {"c": "0", "a": "11", "b": "12", "d": "2"}
	assert len(codes) == 4


def test_no_padding_needed_for_three_symbols():
	root = hc.build_tree({"a": 2, "b": 3, "c": 5}, 3)
	assert [child.symbol for child in root.children] == ["a", "b", "c"]
	assert hc.assign_codes(root, 3) == {"a": "0", "b": "1", "c": "2"}


def test_weight_ties_broken_by_symbol_order():
	root = hc.build_tree({"z": 1, "y": 1, "x": 1, "w": 1}, 2)
	codes = hc.assign_codes(root, 2)
	assert codes == {"w": "00", "x": "01", "y": "10", "z": "11"}


@pytest.mark.parametrize("m", [2, 3, 4, 5, 7])
def test_tree_is_full_and_dummies_never_coded(m):
	rng = random.Random(1234 + m)
	for _ in range(25):
		n = rng.randint(2, 40)
		freqs = {chr(0x41 + i): rng.randint(1, 50) for i in range(n)}
		root = hc.build_tree(freqs, m)
		leaves = _leaves(root)
		assert (len(leaves) - 1) % (m - 1) == 0
		for node in _internals(root):
			assert len(node.children) == m
			assert node.weight == sum(child.weight for child in node.children)
		assert all(leaf.weight == 0 for leaf in leaves if leaf.kind == "dummy")
		codes = hc.assign_codes(root, m)
		assert set(codes) == set(freqs)
		assert codes.is_prefix_free()
		assert all(code and set(code) <= set(hc.DIGITS[:m]) for code in codes.values())


def test_priority_queue_orders_by_weight_then_creation():
	pq = hc.PriorityQueue()
	nodes = [hc.Leaf("b", 2, 1), hc.Leaf("a", 2, 0), hc.Dummy(0, 5), hc.Leaf("c", 1, 2)]
	for node in nodes:
		pq.insert(node)
	assert pq.size() == len(pq) == 4
	snapshot = pq.peek_all()
	assert [n.order for n in snapshot] == [5, 2, 0, 1]
	assert pq.size() == 4
	assert [pq.extract_min().order for _ in range(4)] == [5, 2, 0, 1]
	with pytest.raises(IndexError):
		pq.extract_min()


def test_code_table_is_read_only():
	table = hc.CodeTable({"a": "0", "b": "10", "c": "11"}, 2)
	with pytest.raises(TypeError):
		table["a"] = "1"
	assert table.arity == 2
	assert table.pairs() == [("a", "0"), ("b", "10"), ("c", "11")]
	assert table.is_prefix_free()
	assert not hc.CodeTable({"a": "0", "b": "01"}, 2).is_prefix_free()


def test_tree_to_dict():
	root = hc.build_tree({"a": 1, "b": 1}, 3)
	assert hc.tree_to_dict(root) == {
		"kind": "internal",
		"weight": 2,
		"children": [
			{"kind": "dummy", "weight": 0, "index": 0},
			{"kind": "leaf", "weight": 1, "symbol": "a"},
			{"kind": "leaf", "weight": 1, "symbol": "b"},
		],
	}
	assert hc.tree_to_dict(None) is None


def test_logic_facade():
	logic = hc.HuffmanLogic()
	freqs = logic.count_frequencies("abracadabra")
	root = logic.build_tree(freqs, 4)
	codes = logic.generate_codes(root, 4)
	assert set(codes) == set("abrcd")
	assert codes.arity == 4

"""Tests for errordoc.flatten."""

from __future__ import annotations

import random

import pytest

from errordoc.flatten import flatten_exception, rebuild_exception_tree, resolve_parents
from errordoc.model import ExceptionNode, StackFrame


def _linear_chain(depth: int) -> ExceptionNode:
    node = ExceptionNode(message=f"e{depth}")
    for i in range(depth - 1, -1, -1):
        node = ExceptionNode(message=f"e{i}", cause=(node,))
    return node


def _random_tree(rng: random.Random, depth: int = 0, counter: list[int] | None = None) -> ExceptionNode:
    if counter is None:
        counter = [0]
    counter[0] += 1
    name = f"n{counter[0]}"
    width = rng.choice((0, 0, 1, 1, 2, 3)) if depth < 5 else 0
    causes = tuple(_random_tree(rng, depth + 1, counter) for _ in range(width))
    return ExceptionNode(message=name, cause=causes)


def _count(node: ExceptionNode) -> int:
    return 1 + sum(_count(c) for c in node.cause)


class TestFlattenException:
    def test_fan_out_parent_pattern(self, fan_out_tree: ExceptionNode) -> None:
        records = flatten_exception(fan_out_tree)
        assert records == [
            {"message": "A"},
            {"message": "B"},
            {"message": "C", "parent": 0},
            {"message": "D"},
        ]

    def test_single_node(self) -> None:
        assert flatten_exception(ExceptionNode(message="only")) == [{"message": "only"}]

    def test_empty_node(self) -> None:
        assert flatten_exception(ExceptionNode()) == [{}]

    @pytest.mark.parametrize("depth", [1, 2, 10, 50])
    def test_linear_chain_has_no_parent_fields(self, depth: int) -> None:
        records = flatten_exception(_linear_chain(depth))
        assert len(records) == depth + 1
        assert all("parent" not in r for r in records)
        assert [r["message"] for r in records] == [f"e{i}" for i in range(depth + 1)]

    def test_deep_linear_chain(self) -> None:
        records = flatten_exception(_linear_chain(5000))
        assert len(records) == 5001
        assert all("parent" not in r for r in records)
        assert records[0]["message"] == "e0"
        assert records[-1]["message"] == "e5000"

    def test_deep_chain_with_fan_out_at_bottom(self) -> None:
        leaf = ExceptionNode(
            message="leaf",
            cause=(ExceptionNode(message="x"), ExceptionNode(message="y")),
        )
        node = leaf
        for i in range(3000):
            node = ExceptionNode(message=f"e{i}", cause=(node,))
        records = flatten_exception(node)
        assert len(records) == 3003
        assert [r.get("parent") for r in records[-3:]] == [None, None, 3000]

    def test_k_causes_get_k_minus_one_parents(self) -> None:
        root = ExceptionNode(
            message="root",
            cause=tuple(ExceptionNode(message=f"c{i}") for i in range(4)),
        )
        records = flatten_exception(root)
        assert "parent" not in records[1]
        assert [r.get("parent") for r in records[2:]] == [0, 0, 0]

    def test_nested_fan_out_references_own_index(self) -> None:
        # root -> [x -> [y, z], w]
        root = ExceptionNode(
            message="root",
            cause=(
                ExceptionNode(
                    message="x",
                    cause=(ExceptionNode(message="y"), ExceptionNode(message="z")),
                ),
                ExceptionNode(message="w"),
            ),
        )
        records = flatten_exception(root)
        assert [r["message"] for r in records] == ["root", "x", "y", "z", "w"]
        assert [r.get("parent") for r in records] == [None, None, None, 1, 0]

    def test_scalar_fields(self) -> None:
        node = ExceptionNode(
            message="m",
            module="mod",
            type="T",
            code="42",
            handled=False,
            attributes={"k": ["v"]},
        )
        assert flatten_exception(node) == [
            {
                "message": "m",
                "module": "mod",
                "type": "T",
                "code": "42",
                "handled": False,
                "attributes": {"k": ["v"]},
            }
        ]

    def test_attributes_passed_through_unmodified(self) -> None:
        attributes = {"nested": {"a": 1}}
        records = flatten_exception(ExceptionNode(attributes=attributes))
        assert records[0]["attributes"] is attributes

    def test_handled_absent_when_unknown(self) -> None:
        assert "handled" not in flatten_exception(ExceptionNode(message="m"))[0]

    def test_stacktrace_transformed_per_frame(self, frame: StackFrame) -> None:
        records = flatten_exception(ExceptionNode(stacktrace=(frame, frame)))
        assert len(records[0]["stacktrace"]) == 2
        assert records[0]["stacktrace"][0]["function"] == "create_order"

    def test_empty_stacktrace_omitted(self) -> None:
        assert "stacktrace" not in flatten_exception(ExceptionNode(message="m"))[0]

    def test_custom_frame_transformer(self) -> None:
        node = ExceptionNode(stacktrace=("a", "b"))
        records = flatten_exception(node, frame_transformer=lambda f: {"name": f})
        assert records[0]["stacktrace"] == [{"name": "a"}, {"name": "b"}]

    def test_does_not_mutate_input(self, fan_out_tree: ExceptionNode) -> None:
        before = repr(fan_out_tree)
        flatten_exception(fan_out_tree)
        assert repr(fan_out_tree) == before

    @pytest.mark.parametrize("seed", range(25))
    def test_root_never_has_parent(self, seed: int) -> None:
        records = flatten_exception(_random_tree(random.Random(seed)))
        assert "parent" not in records[0]


class TestResolveParents:
    def test_fan_out(self, fan_out_tree: ExceptionNode) -> None:
        assert resolve_parents(flatten_exception(fan_out_tree)) == [None, 0, 0, 2]

    def test_empty(self) -> None:
        assert resolve_parents([]) == []


class TestRebuildExceptionTree:
    def test_empty(self) -> None:
        assert rebuild_exception_tree([]) is None

    def test_fan_out_round_trip(self, fan_out_tree: ExceptionNode) -> None:
        assert rebuild_exception_tree(flatten_exception(fan_out_tree)) == fan_out_tree

    @pytest.mark.parametrize("seed", range(25))
    def test_random_tree_round_trip(self, seed: int) -> None:
        tree = _random_tree(random.Random(seed))
        records = flatten_exception(tree)
        assert len(records) == _count(tree)
        assert rebuild_exception_tree(records) == tree

    def test_deep_chain_rebuilt(self) -> None:
        root = rebuild_exception_tree(flatten_exception(_linear_chain(5000)))
        depth = 0
        while root is not None and root.cause:
            assert len(root.cause) == 1
            root = root.cause[0]
            depth += 1
        assert depth == 5000
        assert root is not None
        assert root.message == "e5000"

    def test_scalar_fields_round_trip(self) -> None:
        tree = ExceptionNode(
            message="m",
            module="mod",
            type="T",
            code="1",
            handled=True,
            attributes={"a": 1},
            stacktrace=({"function": "f"},),
            cause=(ExceptionNode(type="Inner", handled=False),),
        )
        assert rebuild_exception_tree(flatten_exception(tree)) == tree

import unittest

import pytest

from djinject import MergeConflictError, inject, merge


def one(_):
    return 1


def two(_):
    return 2


class TestModuleMerge(unittest.TestCase):
    def test_merge_later_leaf_wins(self):
        merged = merge({"a": one}, {"a": two})
        assert merged == {"a": two}

    def test_merge_groups_recursively(self):
        merged = merge({"g": {"x": one, "h": {"p": one}}}, {"g": {"y": two, "h": {"q": two}}})
        assert merged == {"g": {"x": one, "h": {"p": one, "q": two}, "y": two}}

    def test_merge_keeps_first_seen_key_order(self):
        merged = merge({"a": one, "b": one}, {"c": two, "a": two})
        assert list(merged) == ["a", "b", "c"]
        assert merged["a"] is two

    def test_merge_does_not_mutate_arguments(self):
        first = {"g": {"x": one}}
        second = {"g": {"y": two}}

        merge(first, second)

        assert first == {"g": {"x": one}}
        assert second == {"g": {"y": two}}

    def test_merge_copies_groups_taken_from_a_single_module(self):
        group = {"x": one, "h": {"p": one}}

        merged = merge({"g": group})
        group["late"] = 42
        group["h"]["q"] = two

        assert merged == {"g": {"x": one, "h": {"p": one}}}
        assert merged["g"] is not group

    def test_merge_copies_group_replacing_factory(self):
        group = {"x": two}

        merged = merge({"g": one}, {"g": group})
        group["late"] = 42

        assert merged == {"g": {"x": two}}

    def test_merge_without_modules_is_empty(self):
        assert merge() == {}

    def test_merge_factory_replaces_group_by_default(self):
        merged = merge({"g": {"x": one}}, {"g": two})
        assert merged == {"g": two}

    def test_merge_group_replaces_factory_by_default(self):
        merged = merge({"g": one}, {"g": {"x": two}})
        assert merged == {"g": {"x": two}}

    def test_merge_strict_rejects_factory_replacing_group(self):
        with pytest.raises(MergeConflictError) as ctx:
            merge({"g": {"h": {"x": one}}}, {"g": {"h": two}}, strict=True)
        assert ctx.value.path == "g.h"

    def test_merge_strict_rejects_group_replacing_factory(self):
        with pytest.raises(MergeConflictError, match="'g'"):
            merge({"g": one}, {"g": {"x": two}}, strict=True)

    def test_merge_strict_allows_factory_overrides(self):
        merged = merge({"g": {"x": one}}, {"g": {"x": two}}, strict=True)
        assert merged == {"g": {"x": two}}


class TestInjectValidation(unittest.TestCase):
    def test_inject_rejects_non_mapping_module(self):
        with pytest.raises(TypeError, match="must be a mapping"):
            inject([one])

    def test_inject_rejects_non_callable_value(self):
        with pytest.raises(TypeError, match="'g.x'"):
            inject({"g": {"x": 1}})

    def test_inject_strict_surfaces_merge_conflict(self):
        with pytest.raises(MergeConflictError):
            inject({"g": {"x": one}}, {"g": two}, strict=True)

    def test_inject_container_ignores_later_changes_to_input_modules(self):
        group = {"x": one}
        c = inject({"g": group})

        group["late"] = 42

        assert list(c.g) == ["x"]
        assert c.g.get("late") is None
        assert c.g.x == 1

    def test_inject_merged_group_with_halves_from_each_module(self):
        c = inject({"g": {"x": one}}, {"g": {"y": two}})
        assert list(c.g) == ["x", "y"]
        assert (c.g.x, c.g.y) == (1, 2)

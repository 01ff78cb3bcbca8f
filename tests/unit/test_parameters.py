"""Unit tests for placeholder scanning, rewriting and the parameter registry."""

import pytest

from sqlnest.parameters import (
    BoundValue,
    ParameterRegistry,
    build_in_string,
    iter_placeholders,
    normalize_param,
    rewrite_named_parameters,
)
from sqlnest.typing import NullPolicy, ParamType


def test_rewrite_numbers_repeated_names() -> None:
    sql, expected = rewrite_named_parameters("SELECT * FROM t WHERE a = :id OR b = :id")
    assert sql == "SELECT * FROM t WHERE a = :id1 OR b = :id2"
    assert expected == {"id": 2}


def test_rewrite_leaves_single_names_untouched() -> None:
    sql, expected = rewrite_named_parameters("UPDATE t SET a = :a, b = :b WHERE c = :a")
    assert sql == "UPDATE t SET a = :a1, b = :b WHERE c = :a2"
    assert expected == {"a": 2, "b": 1}


def test_rewrite_does_not_touch_prefixed_names() -> None:
    sql, expected = rewrite_named_parameters("SELECT :id, :id, :id_type")
    assert sql == "SELECT :id1, :id2, :id_type"
    assert expected == {"id": 2, "id_type": 1}


def test_rewrite_without_placeholders() -> None:
    assert rewrite_named_parameters("SELECT 1") == ("SELECT 1", {})


@pytest.mark.parametrize(
    "query",
    [
        "SELECT ':a' AS quoted, :a",
        'SELECT ":a" AS quoted, :a',
        "SELECT :a -- compare with :a\n",
        "SELECT /* :a */ :a",
        "SELECT $$ :a $$, :a",
        "SELECT $tag$ :a $tag$, :a",
    ],
)
def test_rewrite_skips_literals_and_comments(query: str) -> None:
    sql, expected = rewrite_named_parameters(query)
    assert sql == query
    assert expected == {"a": 1}


def test_rewrite_skips_casts_and_digits() -> None:
    sql, expected = rewrite_named_parameters("SELECT :v::int, :v::text, '10:30', :1")
    assert sql == "SELECT :v1::int, :v2::text, '10:30', :1"
    assert expected == {"v": 2}


def test_rewrite_returns_fresh_mapping() -> None:
    _, expected = rewrite_named_parameters("SELECT :x, :x")
    expected["x"] = 99
    assert rewrite_named_parameters("SELECT :x, :x")[1] == {"x": 2}


def test_iter_placeholders_reports_positions() -> None:
    placeholders = list(iter_placeholders("a = ? AND b = :b"))
    assert [placeholder.name for placeholder in placeholders] == [None, "b"]
    assert placeholders[0].start == 4
    assert placeholders[1].end == 16


def test_iter_placeholders_ignores_json_operators() -> None:
    assert list(iter_placeholders("SELECT data ?| array['a'] FROM t WHERE data ?? 'k'")) == []


def test_build_in_string() -> None:
    assert build_in_string(3) == "?,?,?"
    assert build_in_string(2, "id") == ":id,:id"
    assert build_in_string(["a", "b"]) == "?,?"
    assert build_in_string(0) == "''"
    assert build_in_string([]) == "''"


def test_build_in_string_then_rewrite() -> None:
    sql, expected = rewrite_named_parameters(f"SELECT * FROM t WHERE id IN ({build_in_string(3, 'id')})")
    assert sql == "SELECT * FROM t WHERE id IN (:id1,:id2,:id3)"
    assert expected == {"id": 3}


def test_normalize_param() -> None:
    assert normalize_param(":name") == "name"
    assert normalize_param("name") == "name"
    assert normalize_param(2) == 2


def test_registry_set_get_discard() -> None:
    registry = ParameterRegistry()
    registry.set(":tenant", 7, ParamType.INT, NullPolicy.FORCE)

    assert "tenant" in registry
    assert ":tenant" in registry
    assert registry.get("tenant") == BoundValue(7, ParamType.INT, NullPolicy.FORCE)
    assert len(registry) == 1

    assert registry.discard("tenant") is True
    assert registry.discard("tenant") is True
    assert "tenant" not in registry


def test_registry_matching_keeps_requested_order() -> None:
    registry = ParameterRegistry()
    registry.set("b", 2)
    registry.set("a", 1)
    registry.set("unused", 0)

    assert [name for name, _ in registry.matching(["a", "b", "missing"])] == ["a", "b"]

    registry.clear()
    assert list(registry) == []

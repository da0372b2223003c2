"""Tests for ai/tools/registry.py."""

from __future__ import annotations

from typing import Any

import pytest

from toolstream.ai.tools import (
    DuplicateToolError,
    ObjectSchema,
    StringSchema,
    ToolContract,
    ToolNotFoundError,
    ToolRegistry,
    make_tool,
)


# -----------------------------------------------------------------------------
# Test Fixtures and Helpers
# -----------------------------------------------------------------------------


def make_contract(name: str = "test_tool", handler: Any = None) -> ToolContract:
    """Helper to create a ToolContract."""
    if handler is None:
        handler = lambda args: f"result for {name}"
    return make_tool(
        name=name,
        description=f"The {name} tool",
        schema=ObjectSchema(properties={"arg": StringSchema()}),  # type: ignore[dict-item]
        call=handler,
    )


# -----------------------------------------------------------------------------
# Registration Tests
# -----------------------------------------------------------------------------


class TestRegistration:
    def test_register_and_get(self) -> None:
        registry = ToolRegistry()
        tool = make_contract("alpha")

        assert registry.register(tool) is tool
        assert registry.get("alpha") is tool
        assert "alpha" in registry
        assert len(registry) == 1

    def test_duplicate_name_is_rejected(self) -> None:
        registry = ToolRegistry([make_contract("alpha")])

        with pytest.raises(DuplicateToolError) as excinfo:
            registry.register(make_contract("alpha"))

        assert excinfo.value.name == "alpha"

    def test_override_replaces_existing(self) -> None:
        registry = ToolRegistry([make_contract("alpha")])
        replacement = make_contract("alpha", handler=lambda args: "new")

        registry.register(replacement, allow_override=True)

        assert registry.get("alpha") is replacement
        assert len(registry) == 1

    def test_unregister(self) -> None:
        registry = ToolRegistry([make_contract("alpha")])

        assert registry.unregister("alpha") is True
        assert registry.unregister("alpha") is False
        assert registry.get("alpha") is None


# -----------------------------------------------------------------------------
# Lookup Tests
# -----------------------------------------------------------------------------


class TestLookup:
    def test_get_missing_returns_none(self) -> None:
        assert ToolRegistry().get("missing") is None

    def test_get_required_raises_for_missing(self) -> None:
        with pytest.raises(ToolNotFoundError, match="missing"):
            ToolRegistry().get_required("missing")

    def test_names_and_iteration_keep_registration_order(self) -> None:
        tools = [make_contract("b"), make_contract("a"), make_contract("c")]
        registry = ToolRegistry(tools)

        assert registry.list_names() == ["b", "a", "c"]
        assert list(registry) == tools

    def test_coerce_returns_existing_registry(self) -> None:
        registry = ToolRegistry()

        assert ToolRegistry.coerce(registry) is registry
        assert len(ToolRegistry.coerce(None)) == 0
        assert ToolRegistry.coerce([make_contract("x")]).list_names() == ["x"]


# -----------------------------------------------------------------------------
# Declaration Tests
# -----------------------------------------------------------------------------


class TestDeclarations:
    def test_declarations_in_openai_format(self) -> None:
        registry = ToolRegistry([make_contract("alpha"), make_contract("beta")])

        declarations = registry.declarations()

        assert [item["function"]["name"] for item in declarations] == ["alpha", "beta"]
        assert all(item["type"] == "function" for item in declarations)
        assert declarations[0]["function"]["parameters"] == {
            "type": "object",
            "properties": {"arg": {"type": "string"}},
        }

    def test_filter_names(self) -> None:
        registry = ToolRegistry([make_contract("alpha"), make_contract("beta")])

        declarations = registry.declarations(filter_names=["beta"])

        assert [item["function"]["name"] for item in declarations] == ["beta"]

"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest

from toolstream.ai.tools import ObjectSchema, StringSchema, ToolContract, make_tool


@pytest.fixture
def lookup_tool() -> ToolContract:
    return make_tool(
        name="lookup",
        description="Look up a term",
        schema=ObjectSchema(properties={"q": StringSchema()}, required=("q",)),
        call=lambda args: f"definition of {args['q']}",
    )


@pytest.fixture
def restore_root_logging():
    """Remove handlers installed by ``setup_logging`` during a test."""
    root = logging.getLogger()
    original = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in original:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)

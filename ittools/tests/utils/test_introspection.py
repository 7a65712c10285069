"""
Unit tests for stub-based metadata introspection.
"""
import textwrap

import pytest

from ittools.utils.introspection import (
    capture_descriptors,
    collect_categories,
    describe_category,
)
from ittools.utils.tool_loader import discover_tools


@pytest.mark.parametrize(
    "descriptions, expected",
    [
        ([], "Crypto tools and utilities (5 tools available)"),
        (["", ""], "Crypto tools and utilities (5 tools available)"),
        (["Hash things", "Hash things"], "Hash things"),
        (["A", "B"], "Crypto tools: A, B"),
        (["A", "B", "C"], "Crypto tools: A, B, C"),
        (["A", "B", "C", "D"], "Crypto category with 5 tools including: A, B and more"),
    ],
)
def test_describe_category(descriptions, expected):
    assert describe_category("crypto", descriptions, 5) == expected


def test_describe_category_capitalizes_first_letter_only():
    assert describe_category("dataFormat", [], 1) == "DataFormat tools and utilities (1 tools available)"


@pytest.mark.asyncio
async def test_handlers_are_never_executed(write_tool, tools_root):
    marker = tools_root / "executed"
    source = textwrap.dedent(
        f"""
        from pathlib import Path


        def run(text):
            Path({str(marker)!r}).write_text("ran")


        def register_side_effect(registrar):
            registrar.register_tool("side-effect", {{"description": "Touches a file"}}, run)
        """
    )
    write_tool("misc", "side-effect", source=source)
    [location] = discover_tools(tools_root)

    captured = await capture_descriptors(location)

    assert [(tool_id, d.description) for tool_id, d in captured] == [("side-effect", "Touches a file")]
    assert not marker.exists()


@pytest.mark.asyncio
async def test_introspection_errors_are_swallowed(write_tool, tools_root):
    write_tool("misc", "broken", source="def register_x(registrar):\n    raise RuntimeError('nope')\n")
    [location] = discover_tools(tools_root)
    assert await capture_descriptors(location) == []


@pytest.mark.asyncio
async def test_crypto_scenario(write_tool, tools_root):
    write_tool("crypto", "generate-otp", "Generate TOTP codes")
    write_tool("crypto", "bcrypt-hash", "Generate bcrypt hash or verify password")

    [crypto] = await collect_categories(tools_root)

    assert crypto.name == "crypto"
    assert crypto.tools == ["bcrypt-hash", "generate-otp"]
    assert crypto.description == (
        "Crypto tools: Generate bcrypt hash or verify password, Generate TOTP codes"
    )


@pytest.mark.asyncio
async def test_only_first_three_tools_are_sampled(write_tool, tools_root):
    for name, desc in [("a", "A"), ("b", "B"), ("c", "C"), ("d", "D")]:
        write_tool("text", name, desc)

    [text] = await collect_categories(tools_root)

    assert text.tools == ["a", "b", "c", "d"]
    assert text.description == "Text tools: A, B, C"


@pytest.mark.asyncio
async def test_failing_tool_falls_out_of_sample(write_tool, tools_root):
    write_tool("text", "a", source="raise ImportError('missing dependency')\n")
    write_tool("text", "b", "Only description")

    [text] = await collect_categories(tools_root)

    assert text.description == "Only description"
    assert text.tools == ["a", "b"]


@pytest.mark.asyncio
async def test_categories_without_valid_tools_are_omitted(write_tool, tools_root):
    write_tool("empty", "no-index")
    write_tool("real", "tool", "Does things")

    categories = await collect_categories(tools_root)
    assert [c.name for c in categories] == ["real"]

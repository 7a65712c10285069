"""
Unit tests for directory-based tool discovery and loading.
"""
import logging
import textwrap

import pytest

from ittools.registry import ToolRegistry
from ittools.utils.tool_loader import discover_tools, load_tools


def test_discovery_is_lexicographic(write_tool, tools_root):
    write_tool("b", "zeta", "Z")
    write_tool("b", "alpha", "A")
    write_tool("a", "mid", "M")
    write_tool("a", "beta", "B")

    found = [(loc.category, loc.name) for loc in discover_tools(tools_root)]
    assert found == [("a", "beta"), ("a", "mid"), ("b", "alpha"), ("b", "zeta")]


def test_discovery_skips_hidden_and_cache_dirs(write_tool, tools_root):
    write_tool("a", "tool", "T")
    (tools_root / ".git").mkdir()
    (tools_root / "a" / "__pycache__").mkdir()
    (tools_root / "README.md").write_text("not a category")

    assert [loc.key for loc in discover_tools(tools_root)] == ["a/tool"]


def test_missing_root_gives_empty_result(tmp_path):
    assert discover_tools(tmp_path / "nope") == []


@pytest.mark.asyncio
async def test_missing_root_gives_empty_registry(tmp_path):
    registry = ToolRegistry()
    report = await load_tools(registry, tmp_path / "nope")
    assert len(registry) == 0
    assert registry.loaded is True
    assert report.ok


@pytest.mark.asyncio
async def test_load_registers_tools_with_category(write_tool, tools_root):
    write_tool("crypto", "bcrypt-hash", "Generate bcrypt hash or verify password")
    write_tool("crypto", "generate-otp", "Generate TOTP codes")
    write_tool("encoding", "base64-encode", "Encode text to Base64")

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root)

    assert report.loaded == ["crypto/bcrypt-hash", "crypto/generate-otp", "encoding/base64-encode"]
    assert registry.categories() == {
        "crypto": ["bcrypt-hash", "generate-otp"],
        "encoding": ["base64-encode"],
    }
    assert registry.get_tool("generate-otp").description == "Generate TOTP codes"


@pytest.mark.asyncio
async def test_missing_entry_module_skips_only_that_tool(write_tool, tools_root, caplog):
    write_tool("text", "alpha", "A")
    write_tool("text", "broken")  # directory without index.py
    write_tool("text", "gamma", "C")

    registry = ToolRegistry()
    with caplog.at_level(logging.WARNING):
        report = await load_tools(registry, tools_root)

    assert "alpha" in registry and "gamma" in registry
    assert report.failed_keys() == ["text/broken"]
    assert "text/broken" in caplog.text


@pytest.mark.asyncio
async def test_module_without_entry_point_is_skipped(write_tool, tools_root):
    write_tool("text", "no-entry", source="def helper():\n    return 1\n")
    write_tool("text", "ok", "fine")

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root)

    assert "ok" in registry
    assert report.failed_keys() == ["text/no-entry"]
    assert "No register_* function" in str(report.failures[0])


@pytest.mark.asyncio
async def test_imported_register_functions_are_not_entry_points(write_tool, tools_root):
    source = "from ittools.utils.tool_loader import load_tools as register_everything\n"
    write_tool("text", "imports-only", source=source)

    report = await load_tools(ToolRegistry(), tools_root)
    assert report.failed_keys() == ["text/imports-only"]


@pytest.mark.asyncio
async def test_broken_modules_do_not_stop_discovery(write_tool, tools_root, caplog):
    write_tool("a", "syntax", source="def register_x(r:\n    pass\n")
    write_tool("a", "raises-on-import", source="raise RuntimeError('boom at import')\n")
    write_tool(
        "a",
        "raises-on-register",
        source="def register_bad(registrar):\n    raise ValueError('bad registration')\n",
    )
    write_tool("b", "survivor", "still here")

    registry = ToolRegistry()
    with caplog.at_level(logging.ERROR):
        report = await load_tools(registry, tools_root)

    assert list(registry.categories()) == ["b"]
    assert sorted(report.failed_keys()) == ["a/raises-on-import", "a/raises-on-register", "a/syntax"]
    assert "boom at import" in caplog.text


@pytest.mark.asyncio
async def test_async_entry_point_is_awaited(write_tool, tools_root):
    source = textwrap.dedent(
        """
        async def register_async(registrar):
            registrar.register_tool("async-tool", {"description": "async"}, lambda: "ok")
        """
    )
    write_tool("misc", "async-tool", source=source)

    registry = ToolRegistry()
    await load_tools(registry, tools_root)
    assert "async-tool" in registry


@pytest.mark.asyncio
async def test_hanging_import_times_out_and_later_tools_load(write_tool, tools_root):
    write_tool("a", "hangs", source="import time\ntime.sleep(1)\n\ndef register_x(r):\n    pass\n")
    write_tool("b", "after", "loads fine")

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root, timeout_s=0.2)

    assert "after" in registry
    assert report.failed_keys() == ["a/hangs"]
    assert "timed out" in str(report.failures[0])


@pytest.mark.asyncio
async def test_duplicate_ids_last_registration_wins(write_tool, tools_root, caplog):
    write_tool("a", "dup", source=_dup_source("first"))
    write_tool("b", "dup", source=_dup_source("second"))

    registry = ToolRegistry()
    with caplog.at_level(logging.WARNING):
        await load_tools(registry, tools_root)

    tool = registry.get_tool("shared-id")
    assert tool.description == "second"
    assert tool.category == "b"
    assert "Re-registering tool 'shared-id'" in caplog.text


@pytest.mark.asyncio
async def test_duplicate_ids_can_be_load_errors(write_tool, tools_root):
    write_tool("a", "dup", source=_dup_source("first"))
    write_tool("b", "dup", source=_dup_source("second"))

    registry = ToolRegistry(on_duplicate="error")
    report = await load_tools(registry, tools_root)

    assert registry.get_tool("shared-id").description == "first"
    assert report.failed_keys() == ["b/dup"]


def _dup_source(description: str) -> str:
    return textwrap.dedent(
        f"""
        def register_dup(registrar):
            registrar.register_tool("shared-id", {{"description": {description!r}}}, lambda: {description!r})
        """
    )


@pytest.mark.asyncio
async def test_entry_point_failing_midway_registers_nothing(write_tool, tools_root):
    source = textwrap.dedent(
        """
        def register_half(registrar):
            registrar.register_tool("half", {"description": "half"}, lambda: "half")
            raise RuntimeError("second registration blew up")
        """
    )
    write_tool("a", "half", source=source)
    write_tool("b", "whole", "loads fine")

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root)

    assert "half" not in registry
    assert registry.categories() == {"b": ["whole"]}
    assert report.failed_keys() == ["a/half"]


@pytest.mark.asyncio
async def test_async_entry_point_timing_out_registers_nothing(write_tool, tools_root):
    source = textwrap.dedent(
        """
        import asyncio


        async def register_slow(registrar):
            registrar.register_tool("slow", {"description": "slow"}, lambda: "slow")
            await asyncio.sleep(1)
        """
    )
    write_tool("a", "slow", source=source)

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root, timeout_s=0.2)

    assert "slow" not in registry
    assert report.failed_keys() == ["a/slow"]
    assert "timed out" in str(report.failures[0])


@pytest.mark.asyncio
async def test_categories_that_sanitize_alike_get_distinct_modules(write_tool, tools_root):
    write_tool("a-b", "x", source=_dup_source("dash").replace("shared-id", "dash-x"))
    write_tool("a_b", "x", source=_dup_source("underscore").replace("shared-id", "underscore-x"))

    registry = ToolRegistry()
    report = await load_tools(registry, tools_root)

    assert report.ok
    assert registry.get_tool("dash-x").description == "dash"
    assert registry.get_tool("underscore-x").description == "underscore"
    dash_module = registry.get_tool("dash-x").handler.__module__
    underscore_module = registry.get_tool("underscore-x").handler.__module__
    assert dash_module != underscore_module

"""
Tests for the manifest views built over a temporary tool tree.
"""
import pytest

from ittools import __title__, __version__
from ittools.exceptions import ToolValidationError
from ittools.manifest import ManifestBuilder


@pytest.fixture
def populated(write_tool, tools_root):
    write_tool("crypto", "generate-otp", "Generate TOTP codes")
    write_tool("crypto", "bcrypt-hash", "Generate bcrypt hash or verify password")
    write_tool("encoding", "base64-encode", "Encode text to Base64")
    write_tool("encoding", "half-done")  # no index.py, not counted
    return tools_root


@pytest.mark.asyncio
async def test_info_view(populated):
    builder = ManifestBuilder(populated, features=["Dynamic tool discovery"])
    info = (await builder.build("info")).to_dict()

    assert info == {
        "name": __title__,
        "version": __version__,
        "description": builder.description,
        "totalTools": 3,
        "totalCategories": 2,
        "features": ["Dynamic tool discovery"],
    }


@pytest.mark.asyncio
async def test_tools_view(populated):
    view = (await ManifestBuilder(populated).build("tools")).to_dict()

    assert view["totalTools"] == 3
    assert list(view["toolCategories"]) == ["crypto", "encoding"]
    crypto = view["toolCategories"]["crypto"]
    assert crypto["tools"] == ["bcrypt-hash", "generate-otp"]
    assert crypto["description"] == (
        "Crypto tools: Generate bcrypt hash or verify password, Generate TOTP codes"
    )
    assert view["toolCategories"]["encoding"]["description"] == "Encode text to Base64"


@pytest.mark.asyncio
async def test_categories_view(populated):
    view = (await ManifestBuilder(populated).build("categories")).to_dict()

    assert view["totalCategories"] == 2
    assert view["categories"]["crypto"] == {
        "description": "Crypto tools: Generate bcrypt hash or verify password, Generate TOTP codes",
        "toolCount": 2,
        "tools": ["bcrypt-hash", "generate-otp"],
    }
    assert view["categories"]["encoding"]["toolCount"] == 1


@pytest.mark.asyncio
async def test_unknown_view_is_rejected(populated):
    with pytest.raises(ToolValidationError) as excinfo:
        await ManifestBuilder(populated).build("everything")
    assert "Expected one of: info, tools, categories" in str(excinfo.value)
    assert excinfo.value.field == "view"


@pytest.mark.asyncio
async def test_views_reflect_tree_changes(populated, write_tool):
    builder = ManifestBuilder(populated)
    before = (await builder.build("info")).to_dict()

    write_tool("network", "ipv4-subnet", "Calculate IPv4 subnet details")
    after = (await builder.build("info")).to_dict()

    assert after["totalTools"] == before["totalTools"] + 1
    assert after["totalCategories"] == before["totalCategories"] + 1


@pytest.mark.asyncio
async def test_empty_tree(tmp_path):
    view = (await ManifestBuilder(tmp_path / "missing").build("tools")).to_dict()
    assert view == {"totalTools": 0, "toolCategories": {}}

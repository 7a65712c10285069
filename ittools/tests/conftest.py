"""
Shared fixtures: temporary tool trees laid out as <category>/<tool>/index.py.
"""
import textwrap
from pathlib import Path
from typing import Callable, Optional

import pytest

from ittools.utils.tool_loader import clear_module_cache


def tool_module(tool_id: str, description: str, body: str = "return text") -> str:
    """Source for a minimal tool module registering one text tool."""
    func = "handler_" + "".join(c if c.isalnum() else "_" for c in tool_id)
    return textwrap.dedent(
        f"""
        from ittools.schemas.tool import ToolDescriptor


        def {func}(text):
            {body}


        def register_{func}(registrar):
            registrar.register_tool(
                {tool_id!r},
                ToolDescriptor(description={description!r}, input_schema={{"text": "text"}}),
                {func},
            )
        """
    )


@pytest.fixture
def tools_root(tmp_path: Path) -> Path:
    root = tmp_path / "tools"
    root.mkdir()
    return root


@pytest.fixture
def write_tool(tools_root: Path) -> Callable[..., Path]:
    """Write `<category>/<name>/index.py`; with neither description nor source the dir has no entry module."""

    def _write(
        category: str,
        name: str,
        description: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Path:
        tool_dir = tools_root / category / name
        tool_dir.mkdir(parents=True, exist_ok=True)
        if source is None and description is not None:
            source = tool_module(name, description)
        if source is not None:
            (tool_dir / "index.py").write_text(source)
        return tool_dir

    return _write


@pytest.fixture(autouse=True)
def _fresh_module_cache():
    clear_module_cache()
    yield
    clear_module_cache()

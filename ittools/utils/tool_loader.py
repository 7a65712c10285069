# ittools/utils/tool_loader.py
"""
Utilities for discovering and loading tool modules.

Tools live in a directory tree shaped `<root>/<category>/<tool-name>/index.py`.
Each `index.py` defines one function whose name starts with `register_`; it is
called with a registrar and calls `register_tool(...)` on it.

Goals:
- Walk categories and tools in lexicographic order, so load logs and the
  last-wins tie-break for duplicate ids are deterministic.
- Never crash the process because one tool is broken; log, record and continue.
- Bound every module import by a timeout so a hung import only costs one tool.
- A missing root directory gives an empty registry, not an error.
"""
from __future__ import annotations

import asyncio
import hashlib
import importlib.util
import inspect
import re
import sys
import threading
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Tuple

from ittools.exceptions import ToolLoadError
from ittools.registry import ToolRegistrar, ToolRegistry
from ittools.utils.config import get_config
from ittools.utils.logger import setup_logger

logger = setup_logger(__name__)

ENTRY_MODULE = "index.py"
ENTRY_PREFIX = "register_"

# path -> (mtime_ns, module); an edited file is imported again
_MODULE_CACHE: Dict[Path, Tuple[int, ModuleType]] = {}
_CACHE_LOCK = threading.Lock()


@dataclass(frozen=True)
class ToolLocation:
    """One tool directory found under the root."""

    category: str
    name: str
    path: Path
    entry: Optional[Path]

    @property
    def key(self) -> str:
        return f"{self.category}/{self.name}"


@dataclass
class LoadReport:
    """What a loader pass did: tools loaded and tools skipped with the reason."""

    loaded: List[str] = field(default_factory=list)
    failures: List[ToolLoadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def failed_keys(self) -> List[str]:
        return [f"{e.category}/{e.tool}" for e in self.failures]


def _visible_dirs(path: Path) -> List[Path]:
    return sorted(
        (p for p in path.iterdir() if p.is_dir() and not p.name.startswith((".", "__"))),
        key=lambda p: p.name,
    )


def default_tools_dir() -> Path:
    return Path(get_config()["tools"]["dir"])


def discover_tools(root: Optional[Path] = None) -> List[ToolLocation]:
    """List every tool directory under `root`, categories then tools, sorted.

    Tool directories without an entry module are still returned (with
    `entry=None`) so callers can report them.
    """
    root = Path(root) if root is not None else default_tools_dir()
    if not root.is_dir():
        logger.warning("Tools directory %s does not exist; no tools will be loaded", root)
        return []

    locations: List[ToolLocation] = []
    try:
        categories = _visible_dirs(root)
    except OSError as e:
        logger.error("Could not read tools directory %s: %s", root, e)
        return []

    for category_dir in categories:
        try:
            tool_dirs = _visible_dirs(category_dir)
        except OSError as e:
            logger.error("Could not read category directory %s: %s", category_dir, e)
            continue
        for tool_dir in tool_dirs:
            entry = tool_dir / ENTRY_MODULE
            locations.append(
                ToolLocation(
                    category=category_dir.name,
                    name=tool_dir.name,
                    path=tool_dir,
                    entry=entry if entry.is_file() else None,
                )
            )
    return locations


def _module_name(location: ToolLocation, path: Path) -> str:
    safe = re.sub(r"\W", "_", f"{location.category}__{location.name}")
    # "a-b/x" and "a_b/x" sanitize alike; the path digest keeps them apart
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:8]
    return f"ittools_tool_{safe}_{digest}"


def import_entry_module(location: ToolLocation) -> ModuleType:
    """Import a tool's entry module from its file path (blocking).

    Modules are cached by path and modification time.
    """
    if location.entry is None:
        raise ToolLoadError(
            f"No {ENTRY_MODULE} in {location.key}", category=location.category, tool=location.name
        )
    path = location.entry.resolve()
    mtime = path.stat().st_mtime_ns
    with _CACHE_LOCK:
        cached = _MODULE_CACHE.get(path)
        if cached is not None and cached[0] == mtime:
            return cached[1]

    name = _module_name(location, path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ToolLoadError(
            f"Cannot build an import spec for {path}", category=location.category, tool=location.name
        )
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise

    with _CACHE_LOCK:
        _MODULE_CACHE[path] = (mtime, module)
    logger.debug("Imported tool module: %s", name)
    return module


def find_entry_point(module: ModuleType, location: ToolLocation) -> Callable[[ToolRegistrar], Any]:
    """Return the module's own `register_*` function."""
    candidates = sorted(
        name
        for name, obj in vars(module).items()
        if name.startswith(ENTRY_PREFIX)
        and inspect.isfunction(obj)
        and obj.__module__ == module.__name__
    )
    if not candidates:
        raise ToolLoadError(
            f"No {ENTRY_PREFIX}* function in {location.key}",
            category=location.category,
            tool=location.name,
        )
    if len(candidates) > 1:
        logger.warning(
            "Several entry points in %s (%s); using %s",
            location.key,
            ", ".join(candidates),
            candidates[0],
        )
    return getattr(module, candidates[0])


async def run_entry_point(
    location: ToolLocation,
    registrar: ToolRegistrar,
    timeout_s: Optional[float] = None,
) -> None:
    """Import `location` off the event loop and replay its entry point on `registrar`.

    :raises ToolLoadError: Missing entry module or entry point, or timeout.
    :raises Exception: Whatever the module import or the entry point raised.
    """
    try:
        module = await asyncio.wait_for(asyncio.to_thread(import_entry_module, location), timeout_s)
    except asyncio.TimeoutError:
        raise ToolLoadError(
            f"Import of {location.key} timed out after {timeout_s}s",
            category=location.category,
            tool=location.name,
        ) from None

    entry_point = find_entry_point(module, location)
    outcome = entry_point(registrar)
    if inspect.isawaitable(outcome):
        try:
            await asyncio.wait_for(outcome, timeout_s)
        except asyncio.TimeoutError:
            raise ToolLoadError(
                f"Registration of {location.key} timed out after {timeout_s}s",
                category=location.category,
                tool=location.name,
            ) from None


async def load_tools(
    registry: ToolRegistry,
    root: Optional[Path] = None,
    *,
    timeout_s: Optional[float] = None,
) -> LoadReport:
    """Discover every tool under `root` and register it into `registry`.

    Tools are processed one at a time in lexicographic order. Failures are
    logged and collected in the returned report; they never stop discovery.
    """
    if timeout_s is None:
        timeout_s = get_config()["loader"]["timeout_s"]

    report = LoadReport()
    for location in discover_tools(root):
        if location.entry is None:
            logger.warning("Skipping %s: no %s found", location.key, ENTRY_MODULE)
            report.failures.append(
                ToolLoadError(
                    f"No {ENTRY_MODULE} in {location.key}",
                    category=location.category,
                    tool=location.name,
                )
            )
            continue

        registrar = registry.scoped(location.category)
        try:
            await run_entry_point(location, registrar, timeout_s)
            # staged tools only go live once the entry point has fully succeeded
            registrar.commit()
        except ToolLoadError as e:
            e.category, e.tool = location.category, location.name
            logger.warning("Skipping %s: %s", location.key, e)
            report.failures.append(e)
            continue
        except Exception as e:
            logger.error("Error loading tool %s: %s\n%s", location.key, e, traceback.format_exc())
            report.failures.append(
                ToolLoadError(str(e), category=location.category, tool=location.name)
            )
            continue

        if registrar.registered:
            report.loaded.append(location.key)
            logger.debug("Loaded %s (%s)", location.key, ", ".join(registrar.registered))
        else:
            logger.warning("Entry point of %s registered no tools", location.key)

    registry.loaded = True
    logger.info(
        "Loaded %d tool(s) from %d module(s); %d skipped",
        len(registry),
        len(report.loaded),
        len(report.failures),
    )
    return report


def clear_module_cache() -> None:
    """Drop cached tool modules (intended for tests and explicit reloads)."""
    with _CACHE_LOCK:
        for _, module in _MODULE_CACHE.values():
            sys.modules.pop(module.__name__, None)
        _MODULE_CACHE.clear()


__all__ = [
    "ENTRY_MODULE",
    "ENTRY_PREFIX",
    "LoadReport",
    "ToolLocation",
    "clear_module_cache",
    "discover_tools",
    "load_tools",
    "run_entry_point",
]

# ittools/app.py
"""
Wires the registry, loader, rate limiter and manifest builder together.

`ToolService` is what the CLI and the HTTP routes talk to. It owns the one
rate limiter and the live registry; nothing here is a module-level global.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ittools.exceptions import IttoolsError
from ittools.manifest import ManifestBuilder
from ittools.registry import ToolRegistry
from ittools.schemas.manifest import ManifestView
from ittools.schemas.tool_result import ToolResult
from ittools.secure_handler import DEFAULT_IDENTIFIER, SecureToolHandler
from ittools.utils.config import get_config
from ittools.utils.logger import setup_logger
from ittools.utils.rate_limiter import SlidingWindowRateLimiter
from ittools.utils.tool_loader import LoadReport, clear_module_cache, load_tools

logger = setup_logger(__name__)


class ToolService:
    """One process's view of the tool tree.

    State goes Unloaded -> Loaded on the first `ensure_loaded()`; `reload()`
    is the only way back.
    """

    def __init__(
        self,
        tools_dir: Optional[Path] = None,
        *,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        registry: Optional[ToolRegistry] = None,
        load_timeout_s: Optional[float] = None,
        config: Optional[Mapping[str, Any]] = None,
    ):
        cfg = config if config is not None else get_config()
        self.tools_dir = Path(tools_dir) if tools_dir is not None else Path(cfg["tools"]["dir"])
        self.load_timeout_s = (
            load_timeout_s if load_timeout_s is not None else cfg["loader"]["timeout_s"]
        )
        self.registry = registry or ToolRegistry(on_duplicate=cfg["registry"]["on_duplicate"])
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            window_ms=cfg["rate_limit"]["window_ms"],
            max_requests=cfg["rate_limit"]["max_requests"],
        )
        manifest_cfg = cfg.get("manifest", {})
        self.manifest = ManifestBuilder(
            self.tools_dir,
            features=manifest_cfg.get("features", ()),
            sample_size=manifest_cfg.get("sample_size", 3),
            timeout_s=self.load_timeout_s,
        )
        self.last_report: Optional[LoadReport] = None
        self._load_lock = asyncio.Lock()

    async def ensure_loaded(self) -> ToolRegistry:
        async with self._load_lock:
            if not self.registry.loaded:
                self.last_report = await load_tools(
                    self.registry, self.tools_dir, timeout_s=self.load_timeout_s
                )
        return self.registry

    async def reload(self) -> LoadReport:
        async with self._load_lock:
            self.registry.clear()
            clear_module_cache()
            self.last_report = await load_tools(
                self.registry, self.tools_dir, timeout_s=self.load_timeout_s
            )
            return self.last_report

    def handler_for(self, tool_id: str, identifier: str = DEFAULT_IDENTIFIER) -> SecureToolHandler:
        return SecureToolHandler.for_tool(
            self.registry.get_tool(tool_id),
            rate_limiter=self.rate_limiter,
            identifier=identifier,
        )

    async def call(
        self,
        tool_id: str,
        arguments: Optional[Mapping[str, Any]] = None,
        *,
        identifier: str = DEFAULT_IDENTIFIER,
    ) -> ToolResult:
        """Invoke a registered tool through the secure handler."""
        await self.ensure_loaded()
        try:
            handler = self.handler_for(tool_id, identifier)
        except IttoolsError as e:
            return ToolResult.from_error(e, tool_id=tool_id)
        return await handler(arguments)

    async def manifest_view(self, view: str) -> ManifestView:
        return await self.manifest.build(view)

    async def list_tools(self) -> Dict[str, Dict[str, Any]]:
        await self.ensure_loaded()
        return {
            entry.tool_id: {
                "category": entry.category,
                "description": entry.description,
                "title": entry.descriptor.annotations.title if entry.descriptor.annotations else None,
                "read_only": bool(
                    entry.descriptor.annotations and entry.descriptor.annotations.read_only_hint
                ),
                "input_schema": entry.descriptor.to_json_schema(),
            }
            for entry in self.registry.list_tools()
        }

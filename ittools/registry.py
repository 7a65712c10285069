# ittools/registry.py
"""
Tool registration surface for ittools.

Tool modules never see a concrete registry type. Their entry point receives
something implementing `ToolRegistrar`, which has a single method,
`register_tool(tool_id, descriptor, handler)`. Two variants exist:

- `ToolRegistry` (live): stores the handler so the tool can be invoked.
- `RecordingRegistrar`: keeps the descriptor only and drops the handler,
  so metadata can be harvested without running anything.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel

from ittools.exceptions import ConfigurationError, DuplicateToolError, ToolNotFoundError
from ittools.schemas.tool import ToolDescriptor
from ittools.utils.logger import setup_logger

logger = setup_logger(__name__)

ToolHandler = Callable[..., Any]
DescriptorLike = Union[ToolDescriptor, Mapping[str, Any]]

ON_DUPLICATE_REPLACE = "replace"
ON_DUPLICATE_ERROR = "error"


@runtime_checkable
class ToolRegistrar(Protocol):
    """The only object a tool module's entry point is handed."""

    def register_tool(self, tool_id: str, descriptor: DescriptorLike, handler: ToolHandler) -> None:
        ...


def coerce_descriptor(descriptor: DescriptorLike) -> ToolDescriptor:
    """Accept a ToolDescriptor or a plain mapping with the same fields."""
    if isinstance(descriptor, ToolDescriptor):
        return descriptor
    return ToolDescriptor.model_validate(descriptor)


@dataclass(frozen=True)
class RegisteredTool:
    """Shape consumed by the secure handler and the listing surfaces."""

    tool_id: str
    descriptor: ToolDescriptor
    handler: ToolHandler
    category: Optional[str] = None
    # strict argument model, built once at registration
    input_model: Optional[Type[BaseModel]] = field(default=None, compare=False, repr=False)

    @property
    def description(self) -> str:
        return self.descriptor.description


def build_entry(
    tool_id: str,
    descriptor: DescriptorLike,
    handler: ToolHandler,
    category: Optional[str] = None,
) -> RegisteredTool:
    """Checks one registration and turns it into a `RegisteredTool`."""
    if not tool_id or not isinstance(tool_id, str):
        raise ValueError("tool_id must be a non-empty string")
    if not callable(handler):
        raise TypeError(f"Handler for tool '{tool_id}' is not callable")
    coerced = coerce_descriptor(descriptor)
    return RegisteredTool(
        tool_id=tool_id,
        descriptor=coerced,
        handler=handler,
        category=category,
        input_model=coerced.input_model(),
    )


class ToolRegistry:
    """Live mapping of tool id to (descriptor, handler).

    Filled once by the loader, then read-mostly. Every id maps to exactly one
    handler. A second registration of an id either replaces the first with a
    warning (`on_duplicate="replace"`) or raises `DuplicateToolError`
    (`on_duplicate="error"`).
    """

    def __init__(self, on_duplicate: str = ON_DUPLICATE_REPLACE):
        if on_duplicate not in (ON_DUPLICATE_REPLACE, ON_DUPLICATE_ERROR):
            raise ConfigurationError(
                f"registry.on_duplicate must be 'replace' or 'error', got {on_duplicate!r}"
            )
        self.on_duplicate = on_duplicate
        self._tools: Dict[str, RegisteredTool] = {}
        self._lock = threading.RLock()
        self.loaded = False

    def register_tool(
        self,
        tool_id: str,
        descriptor: DescriptorLike,
        handler: ToolHandler,
        *,
        category: Optional[str] = None,
    ) -> None:
        self.register_batch([build_entry(tool_id, descriptor, handler, category)])

    def register_batch(self, entries: Sequence[RegisteredTool]) -> None:
        """Registers several tools at once; with `on_duplicate="error"` either all or none land."""
        with self._lock:
            if self.on_duplicate == ON_DUPLICATE_ERROR:
                seen: Dict[str, Optional[str]] = {
                    tool_id: entry.category for tool_id, entry in self._tools.items()
                }
                for entry in entries:
                    if entry.tool_id in seen:
                        raise DuplicateToolError(
                            f"Tool id '{entry.tool_id}' already registered by category "
                            f"'{seen[entry.tool_id]}'",
                            category=entry.category or "",
                            tool=entry.tool_id,
                        )
                    seen[entry.tool_id] = entry.category
            for entry in entries:
                existing = self._tools.get(entry.tool_id)
                if existing is not None:
                    logger.warning(
                        "Re-registering tool '%s' (category '%s' replaces '%s').",
                        entry.tool_id,
                        entry.category,
                        existing.category,
                    )
                self._tools[entry.tool_id] = entry
                logger.debug("Registered tool: %s", entry.tool_id)

    def scoped(self, category: str) -> "ScopedRegistrar":
        """A registrar that stages tools under `category` until `commit()`."""
        return ScopedRegistrar(self, category)

    def get_tool(self, tool_id: str) -> RegisteredTool:
        try:
            return self._tools[tool_id]
        except KeyError:
            raise ToolNotFoundError(f"Tool not found: {tool_id}") from None

    def list_tools(self) -> List[RegisteredTool]:
        return [self._tools[k] for k in sorted(self._tools)]

    def categories(self) -> Dict[str, List[str]]:
        """Category name -> sorted tool ids, for tools registered with a category."""
        grouped: Dict[str, List[str]] = {}
        for entry in self.list_tools():
            if entry.category:
                grouped.setdefault(entry.category, []).append(entry.tool_id)
        return dict(sorted(grouped.items()))

    def clear(self) -> None:
        with self._lock:
            self._tools.clear()
            self.loaded = False

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)


class ScopedRegistrar:
    """Stages registrations for one category and hands them to a `ToolRegistry`.

    Nothing reaches the registry until `commit()`, so a module whose entry
    point fails halfway leaves no tools behind.
    """

    def __init__(self, registry: ToolRegistry, category: str):
        self._registry = registry
        self.category = category
        self.pending: List[RegisteredTool] = []
        self.registered: List[str] = []

    def register_tool(self, tool_id: str, descriptor: DescriptorLike, handler: ToolHandler) -> None:
        self.pending.append(build_entry(tool_id, descriptor, handler, self.category))

    def commit(self) -> List[str]:
        """Moves the staged tools into the registry and returns their ids."""
        self._registry.register_batch(self.pending)
        self.registered.extend(entry.tool_id for entry in self.pending)
        self.pending = []
        return self.registered


class RecordingRegistrar:
    """Captures descriptors; handlers are discarded and never called."""

    def __init__(self) -> None:
        self.captured: List[Tuple[str, ToolDescriptor]] = []

    def register_tool(self, tool_id: str, descriptor: DescriptorLike, handler: ToolHandler) -> None:
        self.captured.append((tool_id, coerce_descriptor(descriptor)))

    @property
    def descriptions(self) -> List[str]:
        return [d.description for _, d in self.captured]

    def tool_ids(self) -> Iterable[str]:
        return (tool_id for tool_id, _ in self.captured)


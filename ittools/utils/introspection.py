# ittools/utils/introspection.py
"""
Harvests tool metadata without running any tool.

The introspector imports a tool's entry module the same way the loader does and
calls the same `register_*` entry point, but hands it a `RecordingRegistrar`
that keeps descriptors and throws handlers away. Anything that goes wrong in
that replay is logged and the tool is just missing from that pass.
"""
from __future__ import annotations

import asyncio
from itertools import groupby
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ittools.exceptions import IntrospectionError
from ittools.registry import RecordingRegistrar
from ittools.schemas.tool import ToolCategory, ToolDescriptor
from ittools.utils.logger import setup_logger
from ittools.utils.tool_loader import ToolLocation, discover_tools, run_entry_point

logger = setup_logger(__name__)

DEFAULT_SAMPLE_SIZE = 3


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def describe_category(name: str, descriptions: Sequence[str], tool_count: int) -> str:
    """Builds a one-line category summary from sampled tool descriptions.

    - no description: "<Name> tools and utilities (<N> tools available)"
    - one distinct description: that description
    - two or three: "<Name> tools: a, b, c"
    - more: "<Name> category with <N> tools including: a, b and more"

    :param name: Category directory name.
    :param descriptions: Descriptions in sample order; duplicates and empty
        strings are ignored.
    :param tool_count: Number of valid tools in the category.
    """
    distinct: List[str] = []
    for text in descriptions:
        if text and text not in distinct:
            distinct.append(text)

    title = _capitalize(name)
    if not distinct:
        return f"{title} tools and utilities ({tool_count} tools available)"
    if len(distinct) == 1:
        return distinct[0]
    if len(distinct) <= 3:
        return f"{title} tools: {', '.join(distinct)}"
    return f"{title} category with {tool_count} tools including: {', '.join(distinct[:2])} and more"


async def capture_descriptors(
    location: ToolLocation, timeout_s: Optional[float] = None
) -> List[Tuple[str, ToolDescriptor]]:
    """Replays one tool's registration against a recorder.

    :return: The (tool_id, descriptor) pairs it registered, or [] on any error.
    """
    recorder = RecordingRegistrar()
    try:
        await run_entry_point(location, recorder, timeout_s)
    except Exception as e:
        err = IntrospectionError(f"Could not introspect {location.key}: {e}")
        logger.debug("%s", err)
        return []
    return recorder.captured


async def sample_category(
    category: str,
    locations: Sequence[ToolLocation],
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    timeout_s: Optional[float] = None,
) -> ToolCategory:
    """Describe one category from the first `sample_size` of its valid tools."""
    valid = [loc for loc in locations if loc.entry is not None]
    descriptions: List[str] = []
    for location in valid[:sample_size]:
        for _, descriptor in await capture_descriptors(location, timeout_s):
            descriptions.append(descriptor.description)
    return ToolCategory(
        name=category,
        description=describe_category(category, descriptions, len(valid)),
        tools=sorted(loc.name for loc in valid),
    )


async def collect_categories(
    root: Optional[Path] = None,
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    timeout_s: Optional[float] = None,
) -> List[ToolCategory]:
    """Every category under `root` that has at least one valid tool, sorted by name."""
    valid = [loc for loc in discover_tools(root) if loc.entry is not None]
    grouped = [
        (category, list(group))
        for category, group in groupby(valid, key=lambda loc: loc.category)
    ]
    categories = await asyncio.gather(
        *(
            sample_category(category, group, sample_size=sample_size, timeout_s=timeout_s)
            for category, group in grouped
        )
    )
    return sorted(categories, key=lambda c: c.name)

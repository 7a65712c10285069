# ittools/manifest.py
"""
Builds the queryable manifest of categories and tools.

Every request is answered from a fresh introspection pass; nothing is cached,
so tools added to or removed from the tree show up on the next query.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ittools import __description__, __title__, __version__
from ittools.exceptions import ToolValidationError
from ittools.schemas.manifest import (
    CategoriesView,
    CategoryMetadata,
    CategoryTools,
    ManifestInfo,
    ManifestView,
    ToolsView,
)
from ittools.schemas.tool import ToolCategory
from ittools.utils.introspection import DEFAULT_SAMPLE_SIZE, collect_categories
from ittools.utils.logger import setup_logger

logger = setup_logger(__name__)

VIEW_INFO = "info"
VIEW_TOOLS = "tools"
VIEW_CATEGORIES = "categories"
VIEWS = (VIEW_INFO, VIEW_TOOLS, VIEW_CATEGORIES)


class ManifestBuilder:
    """Aggregates introspection output into the info, tools and categories views."""

    def __init__(
        self,
        root: Optional[Path] = None,
        *,
        name: str = __title__,
        version: str = __version__,
        description: str = __description__,
        features: Sequence[str] = (),
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        timeout_s: Optional[float] = None,
    ):
        self.root = root
        self.name = name
        self.version = version
        self.description = description
        self.features = list(features)
        self.sample_size = sample_size
        self.timeout_s = timeout_s
        self._views: Dict[str, Callable[[List[ToolCategory]], ManifestView]] = {
            VIEW_INFO: self._info,
            VIEW_TOOLS: self._tools,
            VIEW_CATEGORIES: self._categories,
        }

    async def categories(self) -> List[ToolCategory]:
        return await collect_categories(
            self.root, sample_size=self.sample_size, timeout_s=self.timeout_s
        )

    async def build(self, view: str) -> ManifestView:
        """Recompute and return one view.

        :param view: One of "info", "tools", "categories".
        :raises ToolValidationError: For any other view name.
        """
        try:
            render = self._views[view]
        except KeyError:
            raise ToolValidationError(
                f"Unknown manifest view '{view}'. Expected one of: {', '.join(VIEWS)}",
                field="view",
            ) from None
        categories = await self.categories()
        logger.debug("Built manifest view '%s' over %d categories", view, len(categories))
        return render(categories)

    def _info(self, categories: List[ToolCategory]) -> ManifestInfo:
        return ManifestInfo(
            name=self.name,
            version=self.version,
            description=self.description,
            total_tools=sum(len(c.tools) for c in categories),
            total_categories=len(categories),
            features=self.features,
        )

    def _tools(self, categories: List[ToolCategory]) -> ToolsView:
        return ToolsView(
            total_tools=sum(len(c.tools) for c in categories),
            tool_categories={
                c.name: CategoryTools(description=c.description, tools=sorted(c.tools))
                for c in sorted(categories, key=lambda c: c.name)
            },
        )

    def _categories(self, categories: List[ToolCategory]) -> CategoriesView:
        return CategoriesView(
            total_categories=len(categories),
            categories={
                c.name: CategoryMetadata(
                    description=c.description, tool_count=len(c.tools), tools=sorted(c.tools)
                )
                for c in sorted(categories, key=lambda c: c.name)
            },
        )

"""
Response models for the three manifest views.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ManifestView(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ManifestInfo(ManifestView):
    name: str
    version: str
    description: str
    total_tools: int
    total_categories: int
    features: List[str]


class CategoryTools(ManifestView):
    description: str
    tools: List[str]


class ToolsView(ManifestView):
    total_tools: int
    tool_categories: Dict[str, CategoryTools]


class CategoryMetadata(ManifestView):
    description: str
    tool_count: int
    tools: List[str]


class CategoriesView(ManifestView):
    total_categories: int
    categories: Dict[str, CategoryMetadata]

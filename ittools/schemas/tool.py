"""
Schemas for tool descriptors and category metadata.

A `ToolDescriptor` is everything a tool says about itself at registration time,
independent of its executable body. The same descriptor object is produced
whether registration runs against the live registry or the recording stub.
"""

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ittools.utils.input_validation import RULES, build_input_model


class ToolAnnotations(BaseModel):
    """Client-facing hints attached to a tool."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    read_only_hint: bool = False


class ParamSpec(BaseModel):
    """Constraint declared for one named tool parameter.

    `kind` names a rule in the validation catalog (`text`, `password`,
    `regex`, ...). `sanitize` asks the secure handler to clean the value
    after it passed validation.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    required: bool = True
    description: str = ""
    default: Any = None
    sanitize: Optional[Literal["text", "html"]] = None

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, v: str) -> str:
        if v not in RULES:
            raise ValueError(f"Unknown validation kind '{v}'. Known kinds: {sorted(RULES)}")
        return v


class ToolDescriptor(BaseModel):
    """Metadata a tool registers alongside its handler."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    input_schema: Dict[str, ParamSpec] = Field(default_factory=dict)
    annotations: Optional[ToolAnnotations] = None

    @field_validator("input_schema", mode="before")
    @classmethod
    def _expand_shorthand(cls, v: Any) -> Any:
        # {"text": "text"} is shorthand for {"text": {"kind": "text"}}
        if isinstance(v, dict):
            return {
                name: ({"kind": spec} if isinstance(spec, str) else spec)
                for name, spec in v.items()
            }
        return v

    def input_model(self) -> Type[BaseModel]:
        """Builds the strict pydantic model that validates this tool's arguments."""
        return build_input_model(self.input_schema)

    def to_json_schema(self) -> Dict[str, Any]:
        """The input model's JSON schema, with each parameter's rule kind added."""
        schema = self.input_model().model_json_schema()
        properties = schema.get("properties", {})
        for name, spec in self.input_schema.items():
            prop = properties.get(name)
            if prop is None:
                continue
            prop["x-kind"] = spec.kind
            if spec.description:
                prop["description"] = spec.description
        return schema


class ToolCategory(BaseModel):
    """A named group of tools derived from the directory layout."""

    name: str
    description: str
    tools: List[str] = Field(default_factory=list)

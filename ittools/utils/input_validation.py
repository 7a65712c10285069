# ittools/utils/input_validation.py
"""
The validation rule catalog and the functions that apply it.

Each rule is a named semantic kind ("text", "password", "regex", ...) bound to
a size limit and/or a pattern, and is expressed as an `Annotated` pydantic
type. A tool's parameters become one strict pydantic model, so a violation
surfaces as a `pydantic.ValidationError` that is re-raised here as a
`ToolValidationError` naming the rule. Input is never truncated or coerced
to make it fit.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    create_model,
)
from typing_extensions import Annotated

from ittools.exceptions import ToolValidationError
from ittools.utils.logger import setup_logger
from ittools.utils.sanitizer import escape_html, guard_regex, sanitize_text

if TYPE_CHECKING:
    from ittools.schemas.tool import ParamSpec

logger = setup_logger(__name__)

# Input size limits, in characters (list: items)
TEXT_MAX = 1_000_000
SHORT_TEXT_MAX = 1_000
JSON_MAX = 500_000
HTML_MAX = 500_000
XML_MAX = 500_000
YAML_MAX = 100_000
CSV_MAX = 1_000_000
PASSWORD_MAX = 128
TOKEN_LENGTH_MAX = 1_024
REGEX_MAX = 1_000
URL_MAX = 2_048
EMAIL_MAX = 254
FILENAME_MAX = 255
LIST_ITEMS_MAX = 10_000
MAX_SAFE_INTEGER = 2**53 - 1

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _reject_null_byte(value: str) -> str:
    if "\0" in value:
        raise ValueError("contains a forbidden null byte")
    return value


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as e:
        raise ToolValidationError("Invalid URL", rule="url") from e
    return value


@dataclass(frozen=True)
class ValidationRule:
    """An immutable constraint bound to a semantic kind.

    - value_type: the Python type the value must have (never coerced)
    - max_length: characters for strings, items for lists
    - pattern: anchored pattern the whole string must match
    - check: extra validator run after the generic checks; returns the value
    """

    name: str
    value_type: type = str
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    message: str = ""
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    check: Optional[Callable[[Any], Any]] = None

    def annotation(self) -> Any:
        """The `Annotated` type pydantic uses to enforce this rule."""
        metadata: List[Any]
        if self.value_type is str:
            metadata = [
                StringConstraints(max_length=self.max_length, pattern=self.pattern),
                AfterValidator(_reject_null_byte),
            ]
        elif self.value_type is int:
            metadata = [Field(ge=self.min_value, le=self.max_value)]
        else:
            metadata = [Field(max_length=self.max_length)]
        if self.check is not None:
            metadata.append(AfterValidator(self.check))
        return Annotated[tuple([self.value_type, *metadata])]


def _text(name: str, max_length: int, **kw: Any) -> ValidationRule:
    return ValidationRule(name=name, max_length=max_length, **kw)


RULES: Dict[str, ValidationRule] = {
    rule.name: rule
    for rule in (
        _text("text", TEXT_MAX),
        _text("short_text", SHORT_TEXT_MAX),
        _text("password", PASSWORD_MAX),
        _text("token", TOKEN_LENGTH_MAX),
        _text("json", JSON_MAX),
        _text("html", HTML_MAX),
        _text("xml", XML_MAX),
        _text("yaml", YAML_MAX),
        _text("csv", CSV_MAX),
        _text("regex", REGEX_MAX, check=guard_regex),
        _text("url", URL_MAX, check=_check_url),
        _text(
            "email",
            EMAIL_MAX,
            pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
            message="Invalid email address",
        ),
        ValidationRule(
            name="base64",
            pattern=r"^[A-Za-z0-9+/]*={0,2}$",
            message="Invalid Base64 format",
        ),
        ValidationRule(
            name="hex_color",
            pattern=r"^#?[0-9A-Fa-f]{6}$",
            message="Invalid hex color format",
        ),
        _text(
            "filename",
            FILENAME_MAX,
            pattern=r"^[a-zA-Z0-9._-]+$",
            message="Filename contains invalid characters",
        ),
        ValidationRule(name="integer", value_type=int),
        ValidationRule(
            name="positive_int", value_type=int, min_value=1, max_value=MAX_SAFE_INTEGER
        ),
        ValidationRule(name="list", value_type=list, max_length=LIST_ITEMS_MAX),
    )
}

# strict: "5" is not an int and True is not an integer argument
_STRICT = ConfigDict(strict=True)
_INPUT_MODEL_CONFIG = ConfigDict(strict=True, extra="forbid")


def get_rule(kind: str) -> ValidationRule:
    try:
        return RULES[kind]
    except KeyError:
        raise ToolValidationError(f"Unknown validation kind '{kind}'", rule=kind) from None


@lru_cache(maxsize=None)
def _adapter(kind: str) -> TypeAdapter:
    return TypeAdapter(get_rule(kind).annotation(), config=_STRICT)


def _describe(error: Mapping[str, Any], kind: str, label: str) -> str:
    """Turns one pydantic error entry into a message naming the rule."""
    rule = RULES[kind]
    error_type = error["type"]
    ctx = error.get("ctx") or {}
    if error_type.endswith("_type"):
        return f"{label} must be of type {rule.value_type.__name__} for rule '{kind}'"
    if error_type in ("string_too_long", "too_long"):
        return (
            f"{label} exceeded max length for rule '{kind}' "
            f"({len(error['input'])} > {rule.max_length})"
        )
    if error_type == "string_pattern_mismatch":
        return f"{label} failed pattern check for rule '{kind}': {rule.message or 'pattern mismatch'}"
    if error_type == "greater_than_equal":
        return f"{label} is below minimum {rule.min_value} for rule '{kind}'"
    if error_type == "less_than_equal":
        return f"{label} is above maximum {rule.max_value} for rule '{kind}'"
    if error_type == "value_error" and "error" in ctx:
        return f"{label} failed rule '{kind}': {ctx['error']}"
    return f"{label} is invalid for rule '{kind}': {error['msg']}"


def validate_value(kind: str, value: Any, field: Optional[str] = None) -> Any:
    """Checks one value against the rule named `kind`.

    :param kind: Name of a rule in `RULES`.
    :type kind: str
    :param value: The raw value supplied by the caller.
    :type value: Any
    :param field: Parameter name, used in the error message.
    :type field: Optional[str]
    :return: The value, unchanged.
    :rtype: Any
    :raises ToolValidationError: On the first violated constraint.
    """
    label = f"Field '{field}'" if field else "Input"
    try:
        _adapter(kind).validate_python(value)
    except ValidationError as e:
        raise ToolValidationError(
            _describe(e.errors()[0], kind, label), rule=kind, field=field
        ) from e
    return value


def build_input_model(schema: Mapping[str, "ParamSpec"]) -> Type[BaseModel]:
    """Builds the strict pydantic model for one tool's parameters.

    Required parameters have no default; optional ones accept None and fall
    back to their ParamSpec default. Unknown keys are rejected.
    """
    fields: Dict[str, Any] = {}
    for name, spec in schema.items():
        annotation = get_rule(spec.kind).annotation()
        if spec.required:
            fields[name] = (annotation, ...)
        else:
            fields[name] = (Optional[annotation], spec.default)
    return create_model("ToolInput", __config__=_INPUT_MODEL_CONFIG, **fields)


def _argument_error(exc: ValidationError, schema: Mapping[str, "ParamSpec"]) -> ToolValidationError:
    errors = exc.errors()
    unknown = sorted(str(err["loc"][0]) for err in errors if err["type"] == "extra_forbidden")
    if unknown:
        return ToolValidationError(f"Unknown parameter(s): {', '.join(unknown)}", field=unknown[0])

    error = errors[0]
    name = str(error["loc"][0])
    kind = schema[name].kind
    if error["type"] == "missing":
        return ToolValidationError(f"Missing required parameter '{name}'", rule=kind, field=name)
    return ToolValidationError(_describe(error, kind, f"Field '{name}'"), rule=kind, field=name)


def validate_arguments(
    schema: Mapping[str, "ParamSpec"],
    arguments: Mapping[str, Any],
    model: Optional[Type[BaseModel]] = None,
) -> Dict[str, Any]:
    """Validates a full argument mapping against a tool's input model.

    Unknown parameters and missing required parameters are rejected; a None
    value counts as missing. Optional parameters that are absent get their
    ParamSpec's default when it has one. Values whose ParamSpec names a
    `sanitize` mode are cleaned after validation.

    :param model: The model from `build_input_model(schema)`; built on the
        fly when omitted.
    :return: A new dict of arguments ready to hand to the tool.
    :raises ToolValidationError: For unknown parameters, or the first
        violation found.
    """
    if model is None:
        model = build_input_model(schema)
    provided = {name: value for name, value in arguments.items() if value is not None}
    try:
        parsed = model.model_validate(provided)
    except ValidationError as e:
        raise _argument_error(e, schema) from e

    cleaned: Dict[str, Any] = {}
    for name, spec in schema.items():
        if name not in parsed.model_fields_set:
            if spec.default is not None:
                cleaned[name] = spec.default
            continue
        value = getattr(parsed, name)
        if spec.sanitize == "text" and isinstance(value, str):
            value = sanitize_text(value)
        elif spec.sanitize == "html" and isinstance(value, str):
            value = escape_html(sanitize_text(value))
        cleaned[name] = value

    logger.debug("Validated %d argument(s)", len(cleaned))
    return cleaned

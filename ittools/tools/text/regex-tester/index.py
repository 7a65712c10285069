from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolAnnotations, ToolDescriptor
from ittools.utils.sanitizer import compile_safe_regex

MAX_MATCHES = 100


def regex_tester(pattern: str, text: str) -> dict:
    compiled = compile_safe_regex(pattern)
    matches = [
        {"match": m.group(0), "start": m.start(), "groups": list(m.groups())}
        for _, m in zip(range(MAX_MATCHES), compiled.finditer(text))
    ]
    return {"pattern": pattern, "count": len(matches), "matches": matches}


def register_regex_tester(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "regex-tester",
        ToolDescriptor(
            description="Test a regular expression against text",
            input_schema={"pattern": "regex", "text": "text"},
            annotations=ToolAnnotations(title="Regex Tester", read_only_hint=True),
        ),
        regex_tester,
    )

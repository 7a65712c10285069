from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


def html_escape(text: str) -> str:
    # already escaped by the secure handler (sanitize="html")
    return text


def register_html_escape(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "html-escape",
        ToolDescriptor(
            description="Escape HTML special characters",
            input_schema={"text": {"kind": "html", "sanitize": "html"}},
        ),
        html_escape,
    )

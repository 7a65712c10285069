from urllib.parse import quote

from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


def url_encode(text: str) -> str:
    return quote(text, safe="")


def register_url_encode(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "url-encode",
        ToolDescriptor(description="URL-encode text", input_schema={"text": "text"}),
        url_encode,
    )

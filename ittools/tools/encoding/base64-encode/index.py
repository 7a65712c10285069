import base64

from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


def base64_encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def register_base64_encode(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "base64-encode",
        ToolDescriptor(description="Encode text to Base64", input_schema={"text": "text"}),
        base64_encode,
    )

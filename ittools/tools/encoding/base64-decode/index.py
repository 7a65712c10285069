import base64
import binascii

from ittools.exceptions import ToolUserError
from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


def base64_decode(text: str) -> str:
    try:
        return base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise ToolUserError("Input is not Base64-encoded UTF-8 text.") from None


def register_base64_decode(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "base64-decode",
        ToolDescriptor(description="Decode Base64 text", input_schema={"text": "base64"}),
        base64_decode,
    )

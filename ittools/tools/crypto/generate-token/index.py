import secrets
import string

from ittools.exceptions import ToolUserError
from ittools.registry import ToolRegistrar

ALPHABET = string.ascii_letters + string.digits


def generate_token(length: int = 32) -> str:
    if length > 512:
        raise ToolUserError("Length must be between 1 and 512.")
    token = "".join(secrets.choice(ALPHABET) for _ in range(length))
    return f"Generated token: {token}\n\nLength: {length} characters"


def register_generate_token(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "generate-token",
        {
            "description": "Generate a cryptographically secure random token",
            "input_schema": {
                "length": {"kind": "positive_int", "required": False, "default": 32},
            },
        },
        generate_token,
    )

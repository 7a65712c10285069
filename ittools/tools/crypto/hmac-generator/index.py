import hashlib
import hmac

from ittools.exceptions import ToolUserError
from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolAnnotations, ToolDescriptor

ALGORITHMS = ("sha1", "sha256", "sha512")


def hmac_generator(message: str, key: str, algorithm: str = "sha256") -> str:
    if algorithm not in ALGORITHMS:
        raise ToolUserError(f"Algorithm must be one of: {', '.join(ALGORITHMS)}")
    digest = hmac.new(key.encode("utf-8"), message.encode("utf-8"), getattr(hashlib, algorithm))
    return f"HMAC-{algorithm.upper()}: {digest.hexdigest()}"


def register_hmac_generator(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "hmac-generator",
        ToolDescriptor(
            description="Generate HMAC (Hash-based Message Authentication Code)",
            input_schema={
                "message": "text",
                "key": "token",
                "algorithm": {"kind": "short_text", "required": False, "default": "sha256"},
            },
            annotations=ToolAnnotations(title="HMAC Generator", read_only_hint=True),
        ),
        hmac_generator,
    )

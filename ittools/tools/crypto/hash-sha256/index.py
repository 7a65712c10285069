import hashlib

from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolAnnotations, ToolDescriptor


def hash_sha256(text: str) -> str:
    return f"SHA256 hash: {hashlib.sha256(text.encode('utf-8')).hexdigest()}"


def register_hash_sha256(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "hash-sha256",
        ToolDescriptor(
            description="Generate SHA256 hash",
            input_schema={"text": {"kind": "text", "description": "Text to hash with SHA256"}},
            annotations=ToolAnnotations(title="Hash SHA256", read_only_hint=True),
        ),
        hash_sha256,
    )

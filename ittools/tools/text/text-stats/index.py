from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolDescriptor


async def text_stats(text: str) -> dict:
    return {
        "characters": len(text),
        "words": len(text.split()),
        "lines": len(text.splitlines()) or (1 if text else 0),
    }


def register_text_stats(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "text-stats",
        ToolDescriptor(
            description="Count characters, words and lines",
            input_schema={"text": {"kind": "text", "sanitize": "text"}},
        ),
        text_stats,
    )

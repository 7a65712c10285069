from ittools.registry import ToolRegistrar
from ittools.schemas.tool import ToolAnnotations, ToolDescriptor


def hex_to_rgb(color: str) -> str:
    value = color.lstrip("#")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"RGB: rgb({r}, {g}, {b})"


def register_hex_to_rgb(registrar: ToolRegistrar) -> None:
    registrar.register_tool(
        "hex-to-rgb",
        ToolDescriptor(
            description="Convert HEX color to RGB",
            input_schema={"color": "hex_color"},
            annotations=ToolAnnotations(title="HEX to RGB", read_only_hint=True),
        ),
        hex_to_rgb,
    )

"""Conversion of raw Figma nodes into structured design data."""

from typing import Any


def rgba_to_hex(color: dict[str, Any]) -> str:
    """Convert a Figma 0..1 RGBA colour to ``#rrggbb`` (alpha is dropped)."""

    def channel(value: Any) -> str:
        return f"{round(float(value or 0) * 255):02x}"

    return f"#{channel(color.get('r'))}{channel(color.get('g'))}{channel(color.get('b'))}"


def all_nodes(node: dict[str, Any]) -> list[dict[str, Any]]:
    """Flatten a node tree depth-first, parent before children."""
    nodes = [node]
    for child in node.get("children") or []:
        nodes.extend(all_nodes(child))
    return nodes


def node_styles(node: dict[str, Any]) -> dict[str, Any]:
    """CSS-like styles for a single node."""
    styles: dict[str, Any] = {}

    fills = node.get("fills") or []
    if fills and fills[0].get("type") == "SOLID" and fills[0].get("color"):
        styles["background"] = rgba_to_hex(fills[0]["color"])

    strokes = node.get("strokes") or []
    if strokes and strokes[0].get("color"):
        styles["border"] = f"1px solid {rgba_to_hex(strokes[0]['color'])}"

    text_style = node.get("style") or {}
    if text_style.get("fontFamily"):
        styles["fontFamily"] = text_style["fontFamily"]
    if text_style.get("fontSize"):
        styles["fontSize"] = text_style["fontSize"]
    if text_style.get("fontWeight"):
        styles["fontWeight"] = text_style["fontWeight"]
    if text_style.get("textAlignHorizontal"):
        styles["textAlign"] = text_style["textAlignHorizontal"].lower()

    return styles


def component_variants(node: dict[str, Any]) -> dict[str, list[str]]:
    """Variant property options declared on a component."""
    definitions = node.get("componentPropertyDefinitions") or {}
    return {
        name: list(definition.get("variantOptions") or [])
        for name, definition in definitions.items()
        if definition.get("type") == "VARIANT"
    }


def to_design_component(node: dict[str, Any]) -> dict[str, Any]:
    box = node.get("absoluteBoundingBox") or {}
    component: dict[str, Any] = {
        "id": node.get("id"),
        "name": node.get("name"),
        "type": node.get("type"),
        "position": {
            "x": box.get("x", 0),
            "y": box.get("y", 0),
            "width": box.get("width", 0),
            "height": box.get("height", 0),
        },
        "styles": node_styles(node),
    }
    if node.get("children"):
        component["children"] = [to_design_component(c) for c in node["children"]]
    if node.get("characters") is not None:
        component["text"] = node["characters"]
    if node.get("componentPropertyDefinitions") is not None:
        component["properties"] = node["componentPropertyDefinitions"]
    return component


def design_styles(nodes: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Collect the distinct colours, fonts and sizes used by ``nodes``.

    Values keep first-seen order so repeated calls yield identical output.
    """
    colors: dict[str, None] = {}
    fonts: dict[tuple[str, int, float], None] = {}
    spacing: dict[float, None] = {}

    for node in nodes:
        for fill in node.get("fills") or []:
            if fill.get("type") == "SOLID" and fill.get("color"):
                colors[rgba_to_hex(fill["color"])] = None

        text_style = node.get("style") or {}
        if text_style.get("fontFamily"):
            key = (
                text_style["fontFamily"],
                text_style.get("fontWeight") or 400,
                text_style.get("fontSize") or 16,
            )
            fonts[key] = None

        box = node.get("absoluteBoundingBox")
        if box:
            spacing[box.get("width", 0)] = None
            spacing[box.get("height", 0)] = None

    return {
        "colors": [
            {"name": f"color-{i}", "value": value} for i, value in enumerate(colors, 1)
        ],
        "fonts": [
            {"name": f"font-{i}", "family": family, "weight": weight, "size": size}
            for i, (family, weight, size) in enumerate(fonts, 1)
        ],
        "spacing": [
            {"name": f"spacing-{i}", "value": value} for i, value in enumerate(spacing, 1)
        ],
    }


def design_tokens(document: dict[str, Any]) -> list[dict[str, Any]]:
    """Solid fill and stroke colours of every node as design tokens."""
    tokens = []
    for node in all_nodes(document):
        for category, key in (("fills", "fill"), ("strokes", "stroke")):
            for index, paint in enumerate(node.get(category) or []):
                if paint.get("type") == "SOLID" and paint.get("color"):
                    tokens.append(
                        {
                            "name": f"{node.get('name')}-{key}-{index}",
                            "value": rgba_to_hex(paint["color"]),
                            "type": "color",
                            "category": category,
                        }
                    )
    return tokens

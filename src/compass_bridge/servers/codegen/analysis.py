"""Static checks on generated code and structured design data."""

import re
from typing import Any

from compass_bridge.servers.figma.design import all_nodes

_CODE_BLOCK = re.compile(r"```(?:[a-zA-Z]+)?\n([\s\S]*?)\n```")
_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_BLOCK = re.compile(r"<style\b[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_STYLE_ATTR = re.compile(r"\sstyle=(\"[^\"]*\"|'[^']*')", re.IGNORECASE)
_EVENT_ATTR = re.compile(r"\son[a-z]+=", re.IGNORECASE)
_IMG_TAG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

FRAMEWORK_DEPENDENCIES = {
    "react": ["react", "@types/react"],
    "vue": ["vue"],
    "angular": ["@angular/core", "@angular/common"],
    "html": [],
}

STYLING_DEPENDENCIES = {
    "tailwind": ["tailwindcss"],
    "styled-components": ["styled-components", "@types/styled-components"],
    "scss": ["sass"],
    "css": [],
}


def extract_code(response: str) -> str:
    """Return the first fenced code block in ``response``, or all of it."""
    match = _CODE_BLOCK.search(response)
    return match.group(1) if match else response.strip()


def looks_like_code(text: str) -> bool:
    return "<" in text or "function" in text


def extract_dependencies(framework: str, styling: str) -> list[str]:
    dependencies = list(FRAMEWORK_DEPENDENCIES.get(framework, []))
    for dependency in STYLING_DEPENDENCIES.get(styling, []):
        if dependency.startswith("@types/") and framework != "react":
            continue
        dependencies.append(dependency)
    return dependencies


def accessibility_features(code: str) -> list[str]:
    """Accessibility techniques detected in generated code."""
    features = []
    if re.search(r"<(button|nav|main|header|footer|section|label)\b", code):
        features.append("semantic HTML")
    if "aria-" in code:
        features.append("ARIA attributes")
    if re.search(r"<button\b|tabIndex|tabindex|onKeyDown|@keydown", code):
        features.append("keyboard navigation")
    if "focus:" in code or ":focus" in code:
        features.append("visible focus states")
    return features


def _issue(issue_type: str, severity: str, description: str, suggestion: str) -> dict[str, str]:
    return {
        "type": issue_type,
        "severity": severity,
        "description": description,
        "suggestion": suggestion,
    }


def analyze_code_accessibility(code: str, level: str) -> list[dict[str, str]]:
    issues = []

    if "aria-" not in code:
        issues.append(
            _issue(
                "missing-aria",
                "warning",
                "Missing ARIA attributes",
                "Add appropriate ARIA labels and descriptions",
            )
        )

    for tag in _IMG_TAG.findall(code):
        if "alt=" not in tag:
            issues.append(
                _issue(
                    "missing-alt-text",
                    "error",
                    "Image without alternative text",
                    "Add an alt attribute describing the image, or alt=\"\" if decorative",
                )
            )

    if re.search(r"<div\b[^>]*\b(onClick|onclick|@click)=", code) and "role=" not in code:
        issues.append(
            _issue(
                "non-semantic-interactive",
                "warning",
                "Clickable div without a role",
                "Use a <button> element or add role and keyboard handlers",
            )
        )

    if level in ("AA", "AAA") and re.search(r"<html\b(?![^>]*\blang=)", code):
        issues.append(
            _issue(
                "missing-lang",
                "error",
                "Document language is not declared",
                'Add a lang attribute to the <html> element, e.g. lang="en"',
            )
        )

    return issues


def hex_to_rgb(value: str) -> tuple[float, float, float] | None:
    match = _HEX_COLOR.match(value.strip())
    if not match:
        return None
    digits = match.group(1)
    return (
        int(digits[0:2], 16) / 255,
        int(digits[2:4], 16) / 255,
        int(digits[4:6], 16) / 255,
    )


def contrast_ratio(foreground: str, background: str) -> float | None:
    """WCAG contrast ratio between two ``#rrggbb`` colours."""
    fg = hex_to_rgb(foreground)
    bg = hex_to_rgb(background)
    if fg is None or bg is None:
        return None

    def luminance(rgb: tuple[float, float, float]) -> float:
        channels = [
            c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4 for c in rgb
        ]
        return 0.2126 * channels[0] + 0.7152 * channels[1] + 0.0722 * channels[2]

    lighter, darker = sorted((luminance(fg), luminance(bg)), reverse=True)
    return round((lighter + 0.05) / (darker + 0.05), 2)


def _design_components(design_data: Any) -> list[dict[str, Any]]:
    if isinstance(design_data, dict):
        components = design_data.get("components")
        if isinstance(components, list):
            return [c for c in components if isinstance(c, dict)]
        return [design_data]
    if isinstance(design_data, list):
        return [c for c in design_data if isinstance(c, dict)]
    return []


def analyze_design_accessibility(
    design_data: Any, guidelines: dict[str, Any]
) -> list[dict[str, str]]:
    """Check text size and text/background contrast of structured design data.

    A text component's solid fill is its text colour; its background is the
    nearest ancestor with a solid fill.
    """
    issues = []
    min_ratio = guidelines.get("min_contrast_ratio")
    min_font_size = guidelines.get("min_font_size") or 0

    def visit(component: dict[str, Any], background: str | None) -> None:
        styles = component.get("styles") or {}
        fill = styles.get("background")
        name = component.get("name") or component.get("id") or "component"

        if component.get("type") == "TEXT":
            font_size = styles.get("fontSize")
            if font_size and font_size < min_font_size:
                issues.append(
                    _issue(
                        "small-text",
                        "warning",
                        f"Text '{name}' uses {font_size}px font",
                        f"Use at least {min_font_size}px for body text",
                    )
                )
            if min_ratio and fill and background:
                ratio = contrast_ratio(fill, background)
                if ratio is not None and ratio < min_ratio:
                    issues.append(
                        _issue(
                            "low-contrast",
                            "error",
                            f"Text '{name}' has contrast ratio {ratio}:1",
                            f"Increase contrast to at least {min_ratio}:1",
                        )
                    )
            child_background = background
        else:
            child_background = fill or background

        for child in component.get("children") or []:
            if isinstance(child, dict):
                visit(child, child_background)

    for component in _design_components(design_data):
        visit(component, None)
    return issues


def convert_html_to_figma_format(html: str, include_styles: bool) -> str:
    """Strip the parts of an HTML document Figma Make cannot import."""
    converted = _SCRIPT_BLOCK.sub("", html)
    if not include_styles:
        converted = _STYLE_BLOCK.sub("", converted)
        converted = _STYLE_ATTR.sub("", converted)
    return converted


def validate_figma_conversion(figma_code: str) -> list[str]:
    warnings = []
    if "script" in figma_code.lower():
        warnings.append("JavaScript functionality will be lost in Figma")
    if _EVENT_ATTR.search(figma_code):
        warnings.append("Inline event handlers will be ignored by Figma")
    return warnings


def figma_editability(element: dict[str, Any], target_format: str) -> dict[str, Any]:
    """Estimate how much of a generated element survives editing in Figma."""
    serialized = str(element).lower()
    nodes = all_nodes(element) if element else []

    supported = []
    if any("absoluteBoundingBox" in n or "position" in n for n in nodes):
        supported.append("layout")
    if any(n.get("fills") or (n.get("styles") or {}).get("background") for n in nodes):
        supported.append("colors")
    if any(
        n.get("style") or n.get("characters") or (n.get("styles") or {}).get("fontFamily")
        for n in nodes
    ):
        supported.append("typography")

    limitations = []
    recommendations = []
    if "animation" in serialized or "transition" in serialized:
        limitations.append("complex animations")
        recommendations.append("Replace animations with Smart Animate prototypes")
    if "script" in serialized or "onclick" in serialized:
        limitations.append("dynamic content")
        recommendations.append("Avoid JavaScript interactions")
    if target_format == "component":
        recommendations.append("Define variants for interactive states")
    elif target_format == "group":
        recommendations.append("Convert the group to a frame to enable auto layout")
    if not supported:
        recommendations.append("Include layout, fill and text style data")

    return {
        "editable": bool(element) and bool(supported),
        "targetFormat": target_format,
        "supportedFeatures": supported,
        "limitations": limitations,
        "recommendations": recommendations,
    }


def design_consistency(design_data: Any, rules: dict[str, Any]) -> dict[str, Any]:
    """Compare the colours and type scale used by a design to a rule set."""
    palette = {str(v).lower() for v in (rules.get("colors") or {}).values()}
    typography = rules.get("typography") or {}
    sizes = set(typography.get("sizes") or [])
    weights = set(typography.get("weights") or [])
    families = set(typography.get("families") or [])

    issues: list[str] = []
    suggestions: list[str] = []
    seen: set[str] = set()

    def report(issue: str, suggestion: str) -> None:
        if issue not in seen:
            seen.add(issue)
            issues.append(issue)
            suggestions.append(suggestion)

    def visit(component: dict[str, Any]) -> None:
        styles = component.get("styles") or {}
        color = styles.get("background")
        if palette and color and color.lower() not in palette:
            report(
                f"Colour {color} is not in the design system palette",
                f"Replace {color} with the nearest palette colour",
            )
        size = styles.get("fontSize")
        if sizes and size and size not in sizes:
            report(
                f"Font size {size} is not on the type scale",
                f"Use one of {sorted(sizes)}",
            )
        weight = styles.get("fontWeight")
        if weights and weight and weight not in weights:
            report(
                f"Font weight {weight} is not allowed",
                f"Use one of {sorted(weights)}",
            )
        family = styles.get("fontFamily")
        if families and family and family not in families:
            report(
                f"Font family {family} is not part of the design system",
                f"Use one of {sorted(families)}",
            )
        for child in component.get("children") or []:
            if isinstance(child, dict):
                visit(child)

    for component in _design_components(design_data):
        visit(component)

    return {
        "compliance": not issues,
        "issues": issues,
        "suggestions": suggestions,
        "score": max(0, 100 - 5 * len(issues)),
    }

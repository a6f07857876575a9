"""Tests for the code-generation provider."""

import json

import pytest

from compass_bridge.core.mcp.exceptions import (
    InvalidArgumentsError,
    InvalidResourceUriError,
    NotFoundError,
)
from compass_bridge.servers.codegen import CodegenProvider, CodegenTool
from tests.fixtures.providers import StaticTextGenerator

OFF_PALETTE_DESIGN = {
    "components": [{"name": "Card", "styles": {"background": "#ff0000", "fontSize": 15}}]
}


@pytest.fixture
def provider(static_generator):
    return CodegenProvider(static_generator)


class TestListing:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_tools_and_prompts(self, provider):
        tools = await provider.list_tools()
        prompts = await provider.list_prompts()

        assert [t.name for t in tools] == [str(t) for t in CodegenTool]
        generate = tools[0]
        assert set(generate.required) == {"design_data_json", "target_framework"}
        assert generate.input_schema["properties"]["target_framework"]["enum"] == [
            "react",
            "vue",
            "angular",
            "html",
        ]
        assert [p.name for p in prompts] == ["react_component_generator", "accessibility_audit"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_listed_resources_never_fail_with_uri_errors(self, provider):
        for resource in await provider.list_resources():
            try:
                await provider.read_resource(resource.uri)
            except NotFoundError:
                pass


class TestGenerateCode:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fallback_template_without_model(self, provider, static_generator):
        # Act
        result = await provider.invoke_tool(
            "generate_code",
            {"design_data_json": json.dumps(OFF_PALETTE_DESIGN), "target_framework": "react"},
        )

        # Assert
        assert "const Button: React.FC<ButtonProps>" in result["code"]
        assert result["dependencies"] == ["react", "@types/react", "tailwindcss"]
        assert result["accessibility"]["level"] == "wcag-aa"
        assert result["accessibility"]["warnings"] == []
        assert "ARIA attributes" in result["accessibility"]["features"]
        assert result["designSystem"]["compliance"] is False
        assert len(result["designSystem"]["issues"]) == 2
        assert "Framework: react" in static_generator.calls[0]["prompt"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extracts_fenced_code_and_warns(self):
        generator = StaticTextGenerator(
            "Here it is:\n```tsx\nexport const Logo = () => <img src=\"logo.png\" />;\n```"
        )
        provider = CodegenProvider(generator)

        result = await provider.invoke_tool(
            "generate_code",
            {
                "design_data_json": {"components": []},
                "target_framework": "vue",
                "styling": "styled-components",
                "user_prompt": "Use a logo",
                "design_system_reference": '{"colors": {"brand": "#123456"}}',
            },
        )

        assert result["code"] == 'export const Logo = () => <img src="logo.png" />;'
        assert result["dependencies"] == ["vue", "styled-components"]
        assert result["accessibility"]["warnings"] == [
            "Missing ARIA attributes",
            "Image without alternative text",
        ]
        assert result["designSystem"]["compliance"] is True
        prompt = generator.calls[0]["prompt"]
        assert "Use a logo" in prompt
        assert "#123456" in prompt

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rejects_unknown_framework(self, provider):
        with pytest.raises(InvalidArgumentsError, match="target_framework"):
            await provider.invoke_tool(
                "generate_code", {"design_data_json": {}, "target_framework": "svelte"}
            )


class TestOtherTools:
    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("artifact_type", "compatible", "export_format"),
        [("html", True, "figma-make"), ("react", False, "html")],
    )
    async def test_artifact_mockup(self, provider, artifact_type, compatible, export_format):
        result = await provider.invoke_tool(
            "create_artifact_mockup",
            {
                "design_data_json": {},
                "user_prompt": "Landing page",
                "artifact_type": artifact_type,
            },
        )

        assert result["type"] == artifact_type
        assert "GeneratedMockup" in result["content"]
        assert result["figmaCompatible"] is compatible
        assert result["exportFormat"] == export_format

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_export_strips_scripts_and_styles(self, provider):
        html = '<div style="color:red" onclick="go()">Hi</div><script>alert(1)</script>'

        result = await provider.invoke_tool(
            "export_to_figma_make_format", {"html_code": html, "include_styles": "false"}
        )

        assert result["figmaCode"] == '<div onclick="go()">Hi</div>'
        assert result["warnings"] == ["Inline event handlers will be ignored by Figma"]
        assert result["success"] is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_export_keeps_styles_by_default(self, provider):
        result = await provider.invoke_tool(
            "export_to_figma_make_format", {"html_code": '<p style="margin:0">Hi</p>'}
        )

        assert result == {
            "success": True,
            "figmaCode": '<p style="margin:0">Hi</p>',
            "warnings": [],
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_editability(self, provider):
        element = {
            "name": "Card",
            "absoluteBoundingBox": {"x": 0, "y": 0, "width": 10, "height": 10},
            "fills": [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}}],
            "children": [{"type": "TEXT", "characters": "Hi"}],
        }

        result = await provider.invoke_tool(
            "validate_figma_component_editability",
            {"generated_design_element": json.dumps(element)},
        )

        assert result["editable"] is True
        assert result["targetFormat"] == "component"
        assert result["supportedFeatures"] == ["layout", "colors", "typography"]
        assert result["limitations"] == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_consistency_resolves_system_reference(self, provider):
        result = await provider.invoke_tool(
            "analyze_design_consistency",
            {
                "design_data_json": OFF_PALETTE_DESIGN,
                "design_system_rules_url": "codegen://design-systems/material",
            },
        )

        assert result["designSystem"] == "material"
        assert result["compliance"] is False
        assert result["score"] == 90

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_consistency_unknown_system_uses_default(self, provider):
        result = await provider.invoke_tool(
            "analyze_design_consistency",
            {"design_data_json": {}, "design_system_rules_url": "https://example.com/ds"},
        )

        assert result["designSystem"] == "default"
        assert result["compliance"] is True
        assert result["score"] == 100


class TestCheckAccessibility:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_code_input(self, provider):
        result = await provider.invoke_tool(
            "check_accessibility",
            {"design_data_or_code": '<html><img src="a.png"></html>', "wcag_level": "aa"},
        )

        types = [issue["type"] for issue in result["issues"]]
        assert types == ["missing-aria", "missing-alt-text", "missing-lang"]
        assert result["level"] == "AA"
        assert result["compliance"] is False
        assert result["score"] == 70

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_input(self, provider):
        design = {
            "components": [
                {
                    "type": "FRAME",
                    "styles": {"background": "#ffffff"},
                    "children": [
                        {
                            "type": "TEXT",
                            "name": "Caption",
                            "styles": {"background": "#cccccc", "fontSize": 10},
                        }
                    ],
                }
            ]
        }

        result = await provider.invoke_tool(
            "check_accessibility", {"design_data_or_code": design}
        )

        assert [i["type"] for i in result["issues"]] == ["small-text", "low-contrast"]
        assert result["score"] == 80

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_input(self, provider):
        with pytest.raises(InvalidArgumentsError, match="Invalid design data or code format"):
            await provider.invoke_tool(
                "check_accessibility", {"design_data_or_code": "plain words"}
            )


class TestResources:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_template(self, provider):
        data = await provider.read_resource("codegen://templates/React")

        assert data["framework"] == "react"
        assert data["fileExtension"] == "tsx"
        assert "{{name}}" in data["template"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_design_system(self, provider):
        data = await provider.read_resource("codegen://design-systems/tailwind")

        assert data["name"] == "tailwind"
        assert data["colors"]["white"] == "#ffffff"

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", ["AA", "wcag-aa", "WCAGAA"])
    async def test_accessibility_level_aliases(self, provider, level):
        data = await provider.read_resource(f"codegen://accessibility/{level}")

        assert data["level"] == "AA"
        assert data["min_contrast_ratio"] == 4.5

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_entries_are_not_found(self, provider):
        with pytest.raises(NotFoundError, match="Available: react, vue, angular, html"):
            await provider.read_resource("codegen://templates/svelte")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_category(self, provider):
        with pytest.raises(InvalidResourceUriError):
            await provider.read_resource("codegen://widgets/x")

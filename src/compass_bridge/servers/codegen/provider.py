"""Code-generation provider.

Turns structured design data into framework code through a text generator
and runs static accessibility and design-system checks over the result.
Reference material (templates, design systems, WCAG guidelines) ships with
the package as YAML and is exposed as resources.
"""

import json
import logging
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from compass_bridge.api.mcp.providers import BaseCapabilityProvider, ToolHandler, ToolSpec
from compass_bridge.core.mcp.exceptions import (
    InvalidArgumentsError,
    InvalidResourceUriError,
    NotFoundError,
)
from compass_bridge.core.mcp.models import Prompt, PromptArgument, Resource
from compass_bridge.core.mcp.protocols import TextGenerator
from compass_bridge.core.mcp.validation import coerce_bool, parse_json_object

from . import analysis

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

CODEGEN_SYSTEM_PROMPT = (
    "You are an expert front-end engineer. Convert design data into clean, "
    "accessible, production-ready code. Reply with a single fenced code block."
)


class CodegenTool(StrEnum):
    GENERATE_CODE = "generate_code"
    CREATE_ARTIFACT_MOCKUP = "create_artifact_mockup"
    EXPORT_TO_FIGMA_MAKE = "export_to_figma_make_format"
    VALIDATE_FIGMA_EDITABILITY = "validate_figma_component_editability"
    ANALYZE_DESIGN_CONSISTENCY = "analyze_design_consistency"
    CHECK_ACCESSIBILITY = "check_accessibility"


class GenerateCodeParams(BaseModel):
    """Parameters for code generation."""

    DESIGN_DATA_DESC: ClassVar[str] = (
        "Structured design data, e.g. the output of analyze_design_structure"
    )
    FRAMEWORK_DESC: ClassVar[str] = "Target framework for code generation"
    STYLING_DESC: ClassVar[str] = "Styling approach"
    USER_PROMPT_DESC: ClassVar[str] = "Additional user instructions"
    DESIGN_SYSTEM_DESC: ClassVar[str] = "Design system rules and components"
    ACCESSIBILITY_DESC: ClassVar[str] = "Accessibility compliance level"

    design_data_json: dict[str, Any] = Field(description=DESIGN_DATA_DESC)
    target_framework: Literal["react", "vue", "angular", "html"] = Field(
        description=FRAMEWORK_DESC
    )
    styling: Literal["tailwind", "css", "styled-components", "scss"] = Field(
        "tailwind", description=STYLING_DESC
    )
    user_prompt: str | None = Field(None, description=USER_PROMPT_DESC)
    design_system_reference: dict[str, Any] | None = Field(
        None, description=DESIGN_SYSTEM_DESC
    )
    accessibility_level: Literal["basic", "wcag-a", "wcag-aa", "wcag-aaa"] = Field(
        "wcag-aa", description=ACCESSIBILITY_DESC
    )

    @field_validator("design_data_json", "design_system_reference", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)

    @property
    def wcag_level(self) -> str:
        return {"wcag-aaa": "AAA", "wcag-aa": "AA"}.get(self.accessibility_level, "A")


class ArtifactMockupParams(BaseModel):
    design_data_json: dict[str, Any] = Field(
        description=GenerateCodeParams.DESIGN_DATA_DESC
    )
    user_prompt: str = Field(
        min_length=1, description="User instructions for mockup creation"
    )
    artifact_type: Literal["html", "react", "interactive"] = Field(
        "html", description="Type of artifact to create"
    )

    @field_validator("design_data_json", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class FigmaMakeExportParams(BaseModel):
    html_code: str = Field(description="HTML code to convert")
    include_styles: bool = Field(True, description="Whether to include inline styles")

    @field_validator("include_styles", mode="before")
    @classmethod
    def coerce_include_styles(cls, v: Any) -> Any:
        return coerce_bool(v)


class EditabilityParams(BaseModel):
    generated_design_element: dict[str, Any] = Field(
        description="Generated design element data"
    )
    target_figma_format: Literal["component", "frame", "group"] = Field(
        "component", description="Target Figma element type"
    )

    @field_validator("generated_design_element", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class ConsistencyParams(BaseModel):
    design_data_json: dict[str, Any] = Field(description="Design data to analyze")
    design_system_rules_url: str | None = Field(
        None,
        description=(
            "Design system to check against: a name such as 'material' or a "
            "codegen://design-systems/{name} URI"
        ),
    )

    @field_validator("design_data_json", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class AccessibilityParams(BaseModel):
    design_data_or_code: str = Field(description="Design data JSON or generated code")
    wcag_level: Literal["A", "AA", "AAA"] = Field(
        "AA", description="WCAG compliance level"
    )

    @field_validator("design_data_or_code", mode="before")
    @classmethod
    def serialize_objects(cls, v: Any) -> Any:
        if isinstance(v, dict | list):
            return json.dumps(v)
        return v

    @field_validator("wcag_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


def load_catalog(name: str) -> dict[str, Any]:
    """Load one of the packaged YAML catalogs."""
    path = DATA_DIR / f"{name}.yaml"
    with path.open("r") as f:
        data = yaml.safe_load(f) or {}
    logger.debug(f"Loaded {len(data)} entries from {path.name}")
    return data


class CodegenProvider(BaseCapabilityProvider):
    """Generates and audits UI code."""

    scheme = "codegen"
    tool_specs = (
        ToolSpec(
            CodegenTool.GENERATE_CODE,
            "Generate code from Figma design data",
            GenerateCodeParams,
        ),
        ToolSpec(
            CodegenTool.CREATE_ARTIFACT_MOCKUP,
            "Create an interactive mockup artifact from design data",
            ArtifactMockupParams,
        ),
        ToolSpec(
            CodegenTool.EXPORT_TO_FIGMA_MAKE,
            "Convert HTML code to Figma Make compatible format",
            FigmaMakeExportParams,
        ),
        ToolSpec(
            CodegenTool.VALIDATE_FIGMA_EDITABILITY,
            "Check if generated design can be edited in Figma",
            EditabilityParams,
        ),
        ToolSpec(
            CodegenTool.ANALYZE_DESIGN_CONSISTENCY,
            "Check design consistency with design system",
            ConsistencyParams,
        ),
        ToolSpec(
            CodegenTool.CHECK_ACCESSIBILITY,
            "Check accessibility compliance and provide suggestions",
            AccessibilityParams,
        ),
    )

    def __init__(self, generator: TextGenerator, name: str = "codegen"):
        super().__init__(name)
        self._generator = generator
        self._templates = load_catalog("templates")
        self._design_systems = load_catalog("design-systems")
        self._accessibility = load_catalog("accessibility")
        self.enable_resources()
        self.enable_tools()
        self.enable_prompts()

    async def list_resources(self) -> list[Resource]:
        return [
            Resource(
                name="design_templates",
                uri="codegen://templates/{framework}",
                description="Code templates for different frameworks",
                mimeType="text/plain",
            ),
            Resource(
                name="design_systems",
                uri="codegen://design-systems/{system_name}",
                description="Design system rules and components",
            ),
            Resource(
                name="accessibility_guidelines",
                uri="codegen://accessibility/{level}",
                description="Accessibility guidelines and checks",
            ),
        ]

    async def list_prompts(self) -> list[Prompt]:
        return [
            Prompt(
                name="react_component_generator",
                description="Generate React component from Figma design",
                arguments=[
                    PromptArgument(
                        name="component_name",
                        description="Name for the React component",
                        required=True,
                    ),
                    PromptArgument(
                        name="design_description",
                        description="Description of the design to convert",
                        required=True,
                    ),
                ],
            ),
            Prompt(
                name="accessibility_audit",
                description="Perform accessibility audit on design or code",
                arguments=[
                    PromptArgument(
                        name="target", description="Design or code to audit", required=True
                    )
                ],
            ),
        ]

    async def read_resource(self, uri: str) -> Any:
        parsed = self._parse_uri(uri)

        if (segments := parsed.match("templates", 1)) is not None:
            framework = segments[0].lower()
            entry = self._lookup(self._templates, framework, uri, "template")
            return {
                "framework": framework,
                "fileExtension": entry.get("file_extension"),
                "dependencies": entry.get("dependencies", []),
                "template": entry["template"],
            }
        if (segments := parsed.match("design-systems", 1)) is not None:
            system_name = segments[0].lower()
            rules = self._lookup(self._design_systems, system_name, uri, "design system")
            return {"name": system_name, **rules}
        if (segments := parsed.match("accessibility", 1)) is not None:
            level = self._wcag_key(segments[0])
            guidelines = self._lookup(self._accessibility, level, uri, "accessibility level")
            return {"level": level, **guidelines}

        raise InvalidResourceUriError(uri, f"Invalid codegen URI: {uri}")

    def _tool_handlers(self) -> Mapping[StrEnum, ToolHandler]:
        return {
            CodegenTool.GENERATE_CODE: self._generate_code,
            CodegenTool.CREATE_ARTIFACT_MOCKUP: self._create_artifact_mockup,
            CodegenTool.EXPORT_TO_FIGMA_MAKE: self._export_to_figma_make,
            CodegenTool.VALIDATE_FIGMA_EDITABILITY: self._validate_figma_editability,
            CodegenTool.ANALYZE_DESIGN_CONSISTENCY: self._analyze_design_consistency,
            CodegenTool.CHECK_ACCESSIBILITY: self._check_accessibility,
        }

    async def _generate_code(self, params: GenerateCodeParams) -> dict[str, Any]:
        prompt = self._code_generation_prompt(params)
        response = await self._generator.generate(
            prompt,
            system=CODEGEN_SYSTEM_PROMPT,
            fallback=self._render_template(params.target_framework),
        )
        code = analysis.extract_code(response)

        warnings = [
            issue["description"]
            for issue in analysis.analyze_code_accessibility(code, params.wcag_level)
        ]
        rules = params.design_system_reference or self._design_systems["default"]
        consistency = analysis.design_consistency(params.design_data_json, rules)

        return {
            "code": code,
            "dependencies": analysis.extract_dependencies(
                params.target_framework, params.styling
            ),
            "framework": params.target_framework,
            "styling": params.styling,
            "accessibility": {
                "level": params.accessibility_level,
                "features": analysis.accessibility_features(code),
                "warnings": warnings,
            },
            "designSystem": {
                "compliance": consistency["compliance"],
                "issues": consistency["issues"],
                "suggestions": consistency["suggestions"],
            },
        }

    async def _create_artifact_mockup(self, params: ArtifactMockupParams) -> dict[str, Any]:
        prompt = (
            f"Create a {params.artifact_type} artifact based on this Figma design data:\n\n"
            f"{json.dumps(params.design_data_json, indent=2)}\n\n"
            f"User Request: {params.user_prompt}\n\n"
            f"Please create an interactive {params.artifact_type} mockup that:\n"
            "1. Accurately represents the design\n"
            "2. Is compatible with Figma import if possible\n"
            "3. Includes proper styling and layout\n"
            "4. Follows web standards and accessibility guidelines"
        )
        fallback_framework = "react" if params.artifact_type == "react" else "html"
        response = await self._generator.generate(
            prompt,
            system=CODEGEN_SYSTEM_PROMPT,
            fallback=self._render_template(fallback_framework, "GeneratedMockup"),
        )
        content = analysis.extract_code(response)
        figma_compatible = "<!doctype html>" in content.lower()

        return {
            "type": params.artifact_type,
            "content": content,
            "figmaCompatible": figma_compatible,
            "exportFormat": "figma-make" if figma_compatible else "html",
        }

    async def _export_to_figma_make(self, params: FigmaMakeExportParams) -> dict[str, Any]:
        figma_code = analysis.convert_html_to_figma_format(
            params.html_code, params.include_styles
        )
        warnings = analysis.validate_figma_conversion(figma_code)
        return {"success": not warnings, "figmaCode": figma_code, "warnings": warnings}

    async def _validate_figma_editability(self, params: EditabilityParams) -> dict[str, Any]:
        return analysis.figma_editability(
            params.generated_design_element, params.target_figma_format
        )

    async def _analyze_design_consistency(
        self, params: ConsistencyParams
    ) -> dict[str, Any]:
        system_name = "default"
        if params.design_system_rules_url:
            reference = params.design_system_rules_url.rstrip("/")
            candidate = reference.rsplit("/", 1)[-1].lower()
            if candidate in self._design_systems:
                system_name = candidate
            else:
                logger.info(
                    f"Unknown design system reference '{reference}', "
                    "checking against default rules"
                )

        result = analysis.design_consistency(
            params.design_data_json, self._design_systems[system_name]
        )
        return {"designSystem": system_name, **result}

    async def _check_accessibility(self, params: AccessibilityParams) -> dict[str, Any]:
        source = params.design_data_or_code
        if analysis.looks_like_code(source):
            issues = analysis.analyze_code_accessibility(source, params.wcag_level)
        else:
            try:
                design_data = json.loads(source)
            except json.JSONDecodeError as e:
                raise InvalidArgumentsError(
                    CodegenTool.CHECK_ACCESSIBILITY,
                    "Invalid design data or code format",
                ) from e
            issues = analysis.analyze_design_accessibility(
                design_data, self._accessibility[params.wcag_level]
            )

        return {
            "level": params.wcag_level,
            "compliance": not any(i["severity"] == "error" for i in issues),
            "issues": issues,
            "score": max(0, 100 - len(issues) * 10),
        }

    def _code_generation_prompt(self, params: GenerateCodeParams) -> str:
        prompt = (
            f"Generate {params.target_framework} code with {params.styling} styling "
            "based on the following Figma design data:\n\n"
            f"{json.dumps(params.design_data_json, indent=2)}\n\n"
            "Requirements:\n"
            f"- Framework: {params.target_framework}\n"
            f"- Styling: {params.styling}\n"
            f"- Accessibility level: {params.accessibility_level}\n"
            "- Responsive design principles\n"
            "- Clean, maintainable code\n"
            "- Proper semantic HTML structure"
        )
        if params.design_system_reference:
            prompt += (
                "\n\nDesign System Rules:\n"
                f"{json.dumps(params.design_system_reference, indent=2)}"
            )
        if params.user_prompt:
            prompt += f"\n\nAdditional Instructions:\n{params.user_prompt}"
        return prompt

    def _render_template(self, framework: str, name: str = "Button") -> str:
        return str(self._templates[framework]["template"]).replace("{{name}}", name)

    @staticmethod
    def _wcag_key(level: str) -> str:
        key = level.upper()
        return key.removeprefix("WCAG-").removeprefix("WCAG")

    @staticmethod
    def _lookup(catalog: dict[str, Any], key: str, uri: str, label: str) -> dict[str, Any]:
        entry = catalog.get(key)
        if entry is None:
            raise NotFoundError(
                f"Unknown {label} '{key}'. Available: {', '.join(catalog)}",
                {"uri": uri, "available": list(catalog)},
            )
        return entry  # type: ignore[no-any-return]

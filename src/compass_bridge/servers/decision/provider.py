"""Decision-support provider: UX suggestions, experiments and business analysis."""

import json
import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, field_validator

from compass_bridge.api.mcp.providers import BaseCapabilityProvider, ToolHandler, ToolSpec
from compass_bridge.core.mcp.exceptions import InvalidResourceUriError, NotFoundError
from compass_bridge.core.mcp.models import Prompt, PromptArgument, Resource
from compass_bridge.core.mcp.protocols import TextGenerator
from compass_bridge.core.mcp.validation import (
    coerce_bool,
    coerce_float,
    coerce_int,
    parse_json_object,
)
from compass_bridge.utils.parsing import extract_json

from . import analytics

logger = logging.getLogger(__name__)

ADVISOR_SYSTEM_PROMPT = (
    "You are a product analytics and UX strategy advisor. Answer with JSON only, "
    "matching the structure requested in the prompt."
)


class DecisionTool(StrEnum):
    UI_IMPROVEMENT_SUGGESTIONS = "generate_ui_improvement_suggestions"
    SETUP_AB_TEST = "setup_ab_test_variant"
    AB_TEST_RESULTS = "get_ab_test_results_summary"
    STRATEGIC_INITIATIVES = "propose_strategic_initiatives"
    KPI_CATCHPHRASES = "generate_catchphrases_for_kpi"
    MARKET_POSITIONING = "analyze_market_positioning"
    UX_ROI = "calculate_roi_for_ux_improvement"


class ImprovementParams(BaseModel):
    current_design_data: dict[str, Any] = Field(
        description="Current design data from Figma or other sources"
    )
    user_behavior_insights: dict[str, Any] = Field(
        description="User behavior analytics and insights"
    )
    target_kpi: str = Field(
        min_length=1,
        description="Target KPI to improve (e.g., conversion_rate, engagement)",
    )
    business_context: dict[str, Any] | None = Field(
        None, description="Business context and goals"
    )

    @field_validator(
        "current_design_data",
        "user_behavior_insights",
        "business_context",
        mode="before",
    )
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class AbTestParams(BaseModel):
    """Parameters for A/B test setup."""

    DAILY_VISITORS_DESC: ClassVar[str] = (
        "Visitors per day entering the experiment, used to estimate duration"
    )

    original_design_data: dict[str, Any] = Field(description="Original design data")
    suggested_change: dict[str, Any] = Field(
        description="Suggested improvement or change"
    )
    test_hypothesis: str = Field(min_length=1, description="Hypothesis for the A/B test")
    primary_metric: str = Field(min_length=1, description="Primary success metric")
    secondary_metrics: list[str] = Field(
        default_factory=list, description="Secondary metrics to track"
    )
    daily_visitors: int = Field(500, ge=1, description=DAILY_VISITORS_DESC)

    @field_validator("original_design_data", "suggested_change", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)

    @field_validator("daily_visitors", mode="before")
    @classmethod
    def coerce_visitors(cls, v: Any) -> Any:
        return coerce_int(v)


class AbResultsParams(BaseModel):
    test_id: str = Field(min_length=1, description="A/B test identifier")
    include_recommendations: bool = Field(
        True, description="Include recommendations for next steps"
    )

    @field_validator("include_recommendations", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> Any:
        return coerce_bool(v)


class StrategicParams(BaseModel):
    query: str = Field(min_length=1, description="Strategic question or area of focus")
    context_data: dict[str, Any] = Field(description="Relevant business and user data")
    time_horizon: Literal["short-term", "medium-term", "long-term"] = Field(
        "medium-term", description="Time horizon for the initiatives"
    )

    @field_validator("context_data", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class CatchphraseParams(BaseModel):
    kpi_name: str = Field(
        min_length=1, description="Target KPI (e.g., conversion_rate, sign_up_rate)"
    )
    product_info: dict[str, Any] = Field(
        description="Product information and value propositions"
    )
    target_audience: dict[str, Any] = Field(
        description="Target audience demographics and psychographics"
    )
    current_copy: str | None = Field(
        None, description="Current copy/messaging if available"
    )
    context: str = Field(
        min_length=1,
        description="Where the copy will be used (landing page, CTA, email, etc.)",
    )

    @field_validator("product_info", "target_audience", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class MarketParams(BaseModel):
    company_data: dict[str, Any] = Field(description="Company and product data")
    competitor_data: dict[str, Any] | None = Field(
        None, description="Competitor information"
    )
    market_segment: str = Field(min_length=1, description="Target market segment")

    @field_validator("company_data", "competitor_data", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)


class RoiParams(BaseModel):
    """Parameters for UX improvement ROI."""

    METRICS_DESC: ClassVar[str] = (
        'Current performance metrics, e.g. {"revenue": 100000, "conversionRate": 0.05}'
    )
    PROJECTION_DESC: ClassVar[str] = (
        'Projected improvements, e.g. {"conversionRateIncrease": 0.01}'
    )

    improvement_description: str = Field(
        min_length=1, description="Description of the UX improvement"
    )
    implementation_cost: float = Field(
        gt=0, description="Estimated cost of implementation"
    )
    current_metrics: dict[str, Any] = Field(description=METRICS_DESC)
    projected_improvement: dict[str, Any] = Field(description=PROJECTION_DESC)
    timeframe: int = Field(
        12, ge=1, description="Timeframe for ROI calculation (months)"
    )

    @field_validator("current_metrics", "projected_improvement", mode="before")
    @classmethod
    def parse_json_strings(cls, v: Any) -> Any:
        return parse_json_object(v)

    @field_validator("implementation_cost", mode="before")
    @classmethod
    def coerce_cost(cls, v: Any) -> Any:
        return coerce_float(v)

    @field_validator("timeframe", mode="before")
    @classmethod
    def coerce_timeframe(cls, v: Any) -> Any:
        return coerce_int(v)


class DecisionProvider(BaseCapabilityProvider):
    """Data-driven UX and business decision support."""

    scheme = "ai-decision"
    tool_specs = (
        ToolSpec(
            DecisionTool.UI_IMPROVEMENT_SUGGESTIONS,
            "Generate UI improvement suggestions based on user behavior insights",
            ImprovementParams,
        ),
        ToolSpec(
            DecisionTool.SETUP_AB_TEST,
            "Setup A/B test configuration for design changes",
            AbTestParams,
        ),
        ToolSpec(
            DecisionTool.AB_TEST_RESULTS,
            "Get summary and analysis of A/B test results",
            AbResultsParams,
        ),
        ToolSpec(
            DecisionTool.STRATEGIC_INITIATIVES,
            "Propose strategic initiatives based on data analysis",
            StrategicParams,
        ),
        ToolSpec(
            DecisionTool.KPI_CATCHPHRASES,
            "Generate effective catchphrases and copy to improve specific KPIs",
            CatchphraseParams,
        ),
        ToolSpec(
            DecisionTool.MARKET_POSITIONING,
            "Analyze market positioning and provide competitive insights",
            MarketParams,
        ),
        ToolSpec(
            DecisionTool.UX_ROI,
            "Calculate ROI for UX improvement initiatives",
            RoiParams,
        ),
    )

    def __init__(self, generator: TextGenerator, name: str = "ai-decision"):
        super().__init__(name)
        self._generator = generator
        self.enable_resources()
        self.enable_tools()
        self.enable_prompts()

    async def list_resources(self) -> list[Resource]:
        return [
            Resource(
                name="user_behavior_data",
                uri="ai-decision://user-behavior/{time_range}",
                description="User behavior analytics data",
            ),
            Resource(
                name="business_kpis",
                uri="ai-decision://kpis/{period}",
                description="Business KPI data and trends",
            ),
            Resource(
                name="market_insights",
                uri="ai-decision://market/{industry}",
                description="Market trends and competitor insights",
            ),
            Resource(
                name="ab_test_history",
                uri="ai-decision://ab-tests/{status}",
                description="Historical A/B test data and results (completed, running or all)",
            ),
        ]

    async def list_prompts(self) -> list[Prompt]:
        return [
            Prompt(
                name="ux_optimization_consultant",
                description="Act as a UX optimization consultant",
                arguments=[
                    PromptArgument(
                        name="challenge",
                        description="Specific UX challenge or goal",
                        required=True,
                    ),
                    PromptArgument(
                        name="data",
                        description="Available user and business data",
                        required=True,
                    ),
                ],
            ),
            Prompt(
                name="conversion_improvement_expert",
                description="Provide conversion rate optimization recommendations",
                arguments=[
                    PromptArgument(
                        name="current_funnel",
                        description="Current conversion funnel data",
                        required=True,
                    ),
                    PromptArgument(
                        name="target_improvement",
                        description="Target improvement percentage",
                    ),
                ],
            ),
            Prompt(
                name="strategic_advisor",
                description="Provide strategic business advice based on data",
                arguments=[
                    PromptArgument(
                        name="business_question",
                        description="Strategic question or decision point",
                        required=True,
                    ),
                    PromptArgument(
                        name="context",
                        description="Business context and constraints",
                        required=True,
                    ),
                ],
            ),
        ]

    async def read_resource(self, uri: str) -> Any:
        parsed = self._parse_uri(uri)

        if (segments := parsed.match("user-behavior", 1)) is not None:
            return analytics.user_behavior(segments[0])
        if (segments := parsed.match("kpis", 1)) is not None:
            return analytics.business_kpis(segments[0])
        if (segments := parsed.match("market", 1)) is not None:
            return analytics.market_insights(segments[0])
        if (segments := parsed.match("ab-tests", 1)) is not None:
            status = segments[0]
            if status not in analytics.AB_TEST_STATUSES:
                raise NotFoundError(
                    f"Unknown A/B test status '{status}'. "
                    f"Available: {', '.join(analytics.AB_TEST_STATUSES)}",
                    {"uri": uri},
                )
            return analytics.ab_test_history(status)

        raise InvalidResourceUriError(uri, f"Invalid AI decision URI: {uri}")

    def _tool_handlers(self) -> Mapping[StrEnum, ToolHandler]:
        return {
            DecisionTool.UI_IMPROVEMENT_SUGGESTIONS: self._ui_improvement_suggestions,
            DecisionTool.SETUP_AB_TEST: self._setup_ab_test,
            DecisionTool.AB_TEST_RESULTS: self._ab_test_results,
            DecisionTool.STRATEGIC_INITIATIVES: self._strategic_initiatives,
            DecisionTool.KPI_CATCHPHRASES: self._kpi_catchphrases,
            DecisionTool.MARKET_POSITIONING: self._market_positioning,
            DecisionTool.UX_ROI: self._ux_roi,
        }

    async def _ui_improvement_suggestions(
        self, params: ImprovementParams
    ) -> list[dict[str, Any]]:
        prompt = (
            "As a UX optimization expert, analyze the following data and provide "
            f"specific UI improvement suggestions to increase {params.target_kpi}.\n\n"
            f"Current Design Data:\n{json.dumps(params.current_design_data, indent=2)}\n\n"
            f"User Behavior Insights:\n{json.dumps(params.user_behavior_insights, indent=2)}\n"
        )
        if params.business_context:
            prompt += (
                f"\nBusiness Context:\n{json.dumps(params.business_context, indent=2)}\n"
            )
        prompt += (
            "\nPlease provide 3-5 specific, actionable UI improvement suggestions with:\n"
            "1. Clear description of the change\n"
            f"2. Expected impact on {params.target_kpi}\n"
            "3. Implementation complexity\n"
            "4. A/B test recommendations\n\n"
            'Respond as JSON: {"suggestions": [...]}'
        )

        fallback = {
            "suggestions": [
                {
                    "id": "suggestion_1",
                    "title": "Improve CTA Button Visibility",
                    "description": "Increase the contrast and size of the primary CTA button",
                    "category": "visual",
                    "priority": "high",
                    "expectedImpact": {
                        "metric": params.target_kpi,
                        "estimatedImprovement": "15-25%",
                        "confidence": 0.8,
                    },
                }
            ]
        }
        data = await self._ask(prompt, fallback)
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("suggestions"), list):
            return data["suggestions"]  # type: ignore[no-any-return]
        return []

    async def _setup_ab_test(self, params: AbTestParams) -> dict[str, Any]:
        lift = analytics.expected_improvement(params.primary_metric)
        baseline = analytics.BASELINE_RATES.get(
            params.primary_metric, analytics.DEFAULT_BASELINE_RATE
        )
        sample_size = analytics.required_sample_size(baseline, lift)
        duration = analytics.estimate_duration_days(sample_size, 2, params.daily_visitors)

        return {
            "testName": analytics.ab_test_name(params.primary_metric, params.test_hypothesis),
            "hypothesis": params.test_hypothesis,
            "variants": [
                {
                    "name": "Control",
                    "description": "Original design",
                    "trafficAllocation": 50,
                    "designChanges": params.original_design_data,
                },
                {
                    "name": "Variant_A",
                    "description": "Suggested improvement",
                    "trafficAllocation": 50,
                    "designChanges": params.suggested_change,
                },
            ],
            "successMetrics": [
                {"name": params.primary_metric, "target": lift, "importance": "primary"},
                *(
                    {
                        "name": metric,
                        "target": analytics.expected_improvement(metric),
                        "importance": "secondary",
                    }
                    for metric in params.secondary_metrics
                ),
            ],
            "duration": duration,
            "sampleSize": sample_size,
        }

    async def _ab_test_results(self, params: AbResultsParams) -> dict[str, Any]:
        summary = analytics.summarize_ab_test(
            params.test_id,
            control={"visitors": 5000, "conversions": 250},
            variant={"visitors": 5000, "conversions": 300},
        )
        summary["recommendations"] = (
            analytics.ab_test_recommendations(summary["winner"])
            if params.include_recommendations
            else []
        )
        return summary

    async def _strategic_initiatives(self, params: StrategicParams) -> dict[str, Any]:
        prompt = (
            f"As a strategic business advisor, provide initiatives for: {params.query}\n\n"
            f"Context Data:\n{json.dumps(params.context_data, indent=2)}\n\n"
            f"Time Horizon: {params.time_horizon}\n\n"
            "Provide strategic initiatives with priorities and expected outcomes. "
            'Respond as JSON: {"initiatives": [{"title", "description", "priority", '
            '"timeline", "resources", "expectedOutcome", "kpiImpact"}], "reasoning": "..."}'
        )
        fallback = {
            "initiatives": [
                {
                    "title": "Reduce signup friction",
                    "description": "Shorten the signup form and add social login",
                    "priority": "high",
                    "timeline": params.time_horizon,
                    "resources": ["1 designer", "2 engineers"],
                    "expectedOutcome": "Higher signup completion",
                    "kpiImpact": {"conversion_rate": 0.1},
                }
            ],
            "reasoning": f"Signup is the largest drop-off step relevant to: {params.query}",
        }
        data = await self._ask(prompt, fallback)
        if isinstance(data, dict) and "initiatives" in data:
            return data
        return {"initiatives": [], "reasoning": "Failed to parse response"}

    async def _kpi_catchphrases(self, params: CatchphraseParams) -> list[dict[str, Any]]:
        prompt = (
            "As a conversion copywriting expert, create compelling catchphrases and "
            f"copy to improve {params.kpi_name}.\n\n"
            f"Product Information:\n{json.dumps(params.product_info, indent=2)}\n\n"
            f"Target Audience:\n{json.dumps(params.target_audience, indent=2)}\n\n"
            f"Context: {params.context}\n"
        )
        if params.current_copy:
            prompt += f"\nCurrent Copy: {params.current_copy}\n"
        prompt += (
            f"\nPlease provide 5-10 catchphrase variations optimized for {params.kpi_name}. "
            'Respond as JSON: {"ideas": [{"id", "kpiTarget", "idea", "description", '
            '"type", "estimatedImpact", "implementationComplexity", "timeline", '
            '"supportingData", "actionItems"}]}'
        )
        fallback = {
            "ideas": [
                {
                    "id": "idea_1",
                    "kpiTarget": params.kpi_name,
                    "idea": "Start free in 60 seconds",
                    "description": "Emphasize speed and zero cost to lower commitment",
                    "type": "copywriting",
                    "estimatedImpact": 0.1,
                    "implementationComplexity": "low",
                    "timeline": "1 week",
                    "supportingData": ["Short time-to-value claims reduce hesitation"],
                    "actionItems": [f"A/B test the headline in the {params.context}"],
                }
            ]
        }
        data = await self._ask(prompt, fallback)
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("ideas"), list):
            return data["ideas"]  # type: ignore[no-any-return]
        return []

    async def _market_positioning(self, params: MarketParams) -> dict[str, Any]:
        prompt = (
            f"Analyze market positioning for {params.market_segment} segment.\n\n"
            f"Company Data:\n{json.dumps(params.company_data, indent=2)}\n"
        )
        if params.competitor_data:
            prompt += (
                f"\nCompetitor Data:\n{json.dumps(params.competitor_data, indent=2)}\n"
            )
        prompt += (
            "\nProvide SWOT analysis and positioning recommendations. Respond as JSON: "
            '{"positioning", "strengths", "weaknesses", "opportunities", "threats", '
            '"recommendations"}'
        )
        empty = {
            "positioning": "Unknown",
            "strengths": [],
            "weaknesses": [],
            "opportunities": [],
            "threats": [],
            "recommendations": [],
        }
        fallback = {
            **empty,
            "positioning": f"Challenger in the {params.market_segment} segment",
            "opportunities": ["AI adoption", "Personalization"],
            "recommendations": ["Differentiate on onboarding experience"],
        }
        data = await self._ask(prompt, fallback)
        if isinstance(data, dict):
            return {**empty, **data}
        return empty

    async def _ux_roi(self, params: RoiParams) -> dict[str, Any]:
        result = analytics.calculate_roi(
            params.implementation_cost,
            params.current_metrics,
            params.projected_improvement,
            params.timeframe,
        )
        return {"improvement": params.improvement_description, **result}

    async def _ask(self, prompt: str, fallback: Any) -> Any:
        response = await self._generator.generate(
            prompt, system=ADVISOR_SYSTEM_PROMPT, fallback=json.dumps(fallback)
        )
        data = extract_json(response)
        if data is None:
            logger.warning("Model response was not valid JSON")
        return data

"""Experiment statistics, ROI arithmetic and sample analytics data."""

import hashlib
import math
import re
from statistics import NormalDist
from typing import Any

# Relative lift each metric is expected to move by when a change works
EXPECTED_IMPROVEMENTS = {
    "conversion_rate": 0.15,
    "click_through_rate": 0.20,
    "engagement_rate": 0.25,
    "bounce_rate": -0.10,
}
DEFAULT_EXPECTED_IMPROVEMENT = 0.10

BASELINE_RATES = {
    "conversion_rate": 0.05,
    "click_through_rate": 0.10,
    "engagement_rate": 0.30,
    "bounce_rate": 0.65,
}
DEFAULT_BASELINE_RATE = 0.10

ROI_RISK_FACTORS = [
    "Market conditions may change",
    "User behavior assumptions may not hold",
    "Implementation may face technical challenges",
]

AB_TEST_STATUSES = ("completed", "running", "all")


def expected_improvement(metric: str) -> float:
    return EXPECTED_IMPROVEMENTS.get(metric, DEFAULT_EXPECTED_IMPROVEMENT)


def required_sample_size(
    baseline_rate: float,
    relative_lift: float,
    alpha: float = 0.05,
    power: float = 0.8,
) -> int:
    """Visitors needed per variant to detect ``relative_lift`` on a rate.

    Two-sided two-proportion z-test.
    """
    p1 = baseline_rate
    p2 = min(max(baseline_rate * (1 + relative_lift), 0.0001), 0.9999)
    if math.isclose(p1, p2):
        raise ValueError("relative_lift must be non-zero")

    z_alpha = NormalDist().inv_cdf(1 - alpha / 2)
    z_beta = NormalDist().inv_cdf(power)
    p_bar = (p1 + p2) / 2

    numerator = (
        z_alpha * math.sqrt(2 * p_bar * (1 - p_bar))
        + z_beta * math.sqrt(p1 * (1 - p1) + p2 * (1 - p2))
    ) ** 2
    return math.ceil(numerator / (p2 - p1) ** 2)


def estimate_duration_days(sample_size_per_variant: int, variants: int, daily_visitors: int) -> int:
    return max(1, math.ceil(sample_size_per_variant * variants / daily_visitors))


def ab_test_name(primary_metric: str, hypothesis: str) -> str:
    """Stable test name derived from the metric and hypothesis."""
    slug = re.sub(r"[^a-z0-9]+", "_", primary_metric.lower()).strip("_") or "metric"
    digest = hashlib.sha1(hypothesis.encode("utf-8")).hexdigest()[:8]
    return f"AB_Test_{slug}_{digest}"


def two_proportion_test(
    control_visitors: int,
    control_conversions: int,
    variant_visitors: int,
    variant_conversions: int,
) -> tuple[float, float]:
    """Return ``(z, two_sided_p_value)`` for the difference in rates."""
    p1 = control_conversions / control_visitors
    p2 = variant_conversions / variant_visitors
    pooled = (control_conversions + variant_conversions) / (
        control_visitors + variant_visitors
    )
    se = math.sqrt(pooled * (1 - pooled) * (1 / control_visitors + 1 / variant_visitors))
    if se == 0:
        return 0.0, 1.0
    z = (p2 - p1) / se
    p_value = 2 * (1 - NormalDist().cdf(abs(z)))
    return z, p_value


def ab_test_recommendations(winner: str | None) -> list[str]:
    if winner and winner != "control":
        return [
            "Implement the winning variant across all traffic",
            "Monitor performance for the next 30 days",
            "Consider testing additional improvements based on this success",
        ]
    return [
        "Continue with the control version",
        "Analyze why the variant underperformed",
        "Design new hypotheses for future tests",
    ]


def summarize_ab_test(
    test_id: str,
    control: dict[str, int],
    variant: dict[str, int],
    status: str = "completed",
    alpha: float = 0.05,
) -> dict[str, Any]:
    """Rates, significance and winner for a two-arm test."""
    control_rate = control["conversions"] / control["visitors"]
    variant_rate = variant["conversions"] / variant["visitors"]
    _, p_value = two_proportion_test(
        control["visitors"], control["conversions"], variant["visitors"], variant["conversions"]
    )
    significant = p_value < alpha

    winner = None
    if significant:
        winner = "variant_a" if variant_rate > control_rate else "control"

    return {
        "testId": test_id,
        "status": status,
        "results": {
            "control": {**control, "conversionRate": round(control_rate, 4)},
            "variant_a": {**variant, "conversionRate": round(variant_rate, 4)},
        },
        "pValue": round(p_value, 4),
        "significance": round(1 - p_value, 4),
        "winner": winner,
        "improvement": round((variant_rate - control_rate) / control_rate * 100, 2),
    }


def calculate_roi(
    implementation_cost: float,
    current_metrics: dict[str, Any],
    projected_improvement: dict[str, Any],
    timeframe_months: int = 12,
) -> dict[str, Any]:
    """ROI of a change that lifts conversion rate.

    Monthly benefit is revenue scaled by the relative conversion lift;
    ROI is net benefit over cost, in percent.
    """
    monthly_revenue = float(current_metrics.get("revenue") or 100000)
    conversion_rate = float(current_metrics.get("conversionRate") or 0.05)
    lift = float(projected_improvement.get("conversionRateIncrease") or 0.01)

    monthly_improvement = monthly_revenue * (lift / conversion_rate)
    total_benefit = monthly_improvement * timeframe_months
    net_benefit = total_benefit - implementation_cost
    roi = net_benefit / implementation_cost * 100
    payback = (
        implementation_cost / monthly_improvement if monthly_improvement > 0 else None
    )

    return {
        "roi": round(roi, 2),
        "paybackPeriod": round(payback, 2) if payback is not None else None,
        "netBenefit": round(net_benefit, 2),
        "monthlyBenefit": round(monthly_improvement, 2),
        "timeframe": timeframe_months,
        "riskFactors": list(ROI_RISK_FACTORS),
        "confidence": 0.8,
    }


def user_behavior(time_range: str) -> dict[str, Any]:
    return {
        "timeRange": time_range,
        "conversionRate": 0.05,
        "bounceRate": 0.65,
        "avgSessionDuration": 180,
        "topExitPages": ["/checkout", "/pricing", "/signup"],
        "userFlow": [
            {"step": "landing", "dropoffRate": 0.20, "commonActions": ["scroll", "click_cta"]},
            {"step": "signup", "dropoffRate": 0.40, "commonActions": ["form_fill", "social_login"]},
            {
                "step": "onboarding",
                "dropoffRate": 0.15,
                "commonActions": ["tutorial_skip", "feature_explore"],
            },
        ],
        "demographics": {
            "ageGroups": {"18-24": 0.15, "25-34": 0.35, "35-44": 0.30, "45+": 0.20},
            "devices": {"desktop": 0.60, "mobile": 0.35, "tablet": 0.05},
            "locations": {"North America": 0.50, "Europe": 0.30, "Asia": 0.20},
        },
    }


def business_kpis(period: str) -> dict[str, Any]:
    return {
        "period": period,
        "revenue": 500000,
        "conversionRate": 0.05,
        "customerAcquisitionCost": 50,
        "lifetimeValue": 1000,
        "churnRate": 0.05,
    }


def market_insights(industry: str) -> dict[str, Any]:
    return {
        "industry": industry,
        "marketSize": "$10B",
        "growthRate": 0.15,
        "trends": ["AI adoption", "Mobile-first", "Personalization"],
    }


AB_TEST_HISTORY = [
    {
        "id": "test_1",
        "name": "CTA Button Color",
        "status": "completed",
        "winner": "variant_a",
        "improvement": 0.15,
    },
    {
        "id": "test_2",
        "name": "Simplified Signup Form",
        "status": "running",
        "winner": None,
        "improvement": None,
    },
]


def ab_test_history(status: str) -> dict[str, Any]:
    tests = [
        dict(test) for test in AB_TEST_HISTORY if status == "all" or test["status"] == status
    ]
    return {"status": status, "tests": tests}

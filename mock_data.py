"""Canned analyses served in demo mode."""

from __future__ import annotations

from typing import Dict

from models import AnalysisResult

MOCK_ANALYSIS_RESULTS: Dict[str, AnalysisResult] = {
    "Clay Mask": AnalysisResult(
        product_name="Clay Mask",
        demand_score=85,
        revenue="$52,000/mo",
        trend="up",
        opportunity_level="High",
        recommendation=(
            "Strong Amazon demand. Top competitors rely heavily on Google Ads. "
            "Focus your budget on PPC to capture high-intent traffic."
        ),
        revenue_history=[
            {"month": "Jan", "value": 30000},
            {"month": "Feb", "value": 35000},
            {"month": "Mar", "value": 32000},
            {"month": "Apr", "value": 40000},
            {"month": "May", "value": 48000},
            {"month": "Jun", "value": 52000},
        ],
        traffic_distribution=[
            {"name": "Paid Ads", "value": 65},
            {"name": "Organic", "value": 20},
            {"name": "Social", "value": 10},
            {"name": "Other", "value": 5},
        ],
        competitors=[
            {
                "domain": "glamglow.com",
                "traffic": "125k/mo",
                "traffic_source": "Paid (Ads)",
                "top_keywords": ["best clay mask", "glamglow sale", "pore cleanser"],
            },
            {
                "domain": "kiehls.com",
                "traffic": "850k/mo",
                "traffic_source": "Organic (SEO)",
                "top_keywords": ["face mask for men", "rare earth deep pore", "kiehls"],
            },
            {
                "domain": "innisfree.com",
                "traffic": "45k/mo",
                "traffic_source": "Paid (Ads)",
                "top_keywords": ["volcanic clay mask", "innisfree coupon"],
            },
        ],
    ),
    "Beetroot Scrub": AnalysisResult(
        product_name="Beetroot Scrub",
        demand_score=20,
        revenue="$3,200/mo",
        trend="down",
        opportunity_level="Low",
        recommendation=(
            "Low demand verified on Amazon (<$5k/mo). The market saturation is high with low "
            "search volume. Recommend pivoting to a different niche or bundling."
        ),
        revenue_history=[
            {"month": "Jan", "value": 4500},
            {"month": "Feb", "value": 4200},
            {"month": "Mar", "value": 3800},
            {"month": "Apr", "value": 3500},
            {"month": "May", "value": 3300},
            {"month": "Jun", "value": 3200},
        ],
        traffic_distribution=[
            {"name": "Organic", "value": 70},
            {"name": "Social", "value": 20},
            {"name": "Paid Ads", "value": 5},
            {"name": "Other", "value": 5},
        ],
        competitors=[
            {
                "domain": "generic-beauty.com",
                "traffic": "5k/mo",
                "traffic_source": "Organic (SEO)",
                "top_keywords": ["beetroot benefits", "natural scrub"],
            },
        ],
    ),
    "Snail Mucin": AnalysisResult(
        product_name="Snail Mucin Serum",
        demand_score=98,
        revenue="$120,000/mo",
        trend="up",
        opportunity_level="High",
        recommendation=(
            "Explosive trend (+200% YoY). High search volume with relatively few established "
            "DTC specialists outside of Cosrx. Huge opportunity for branding."
        ),
        revenue_history=[
            {"month": "Jan", "value": 50000},
            {"month": "Feb", "value": 65000},
            {"month": "Mar", "value": 80000},
            {"month": "Apr", "value": 95000},
            {"month": "May", "value": 110000},
            {"month": "Jun", "value": 120000},
        ],
        traffic_distribution=[
            {"name": "Social", "value": 55},
            {"name": "Organic", "value": 30},
            {"name": "Paid Ads", "value": 10},
            {"name": "Other", "value": 5},
        ],
        competitors=[
            {
                "domain": "cosrx.com",
                "traffic": "2.5M/mo",
                "traffic_source": "Organic (SEO)",
                "top_keywords": ["snail 96", "korean skincare", "cosrx"],
            },
            {
                "domain": "peachandlily.com",
                "traffic": "450k/mo",
                "traffic_source": "Paid (Ads)",
                "top_keywords": ["glass skin serum", "best k-beauty"],
            },
        ],
    ),
}

DEMO_FALLBACK_RECOMMENDATION = (
    "Analysis complete. Data is limited for this keyword in demo mode. "
    "Try 'Clay Mask' or 'Snail Mucin'."
)

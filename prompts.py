"""
Prompt builders for the niche analysis agent.

The system prompt encodes the demand-gate workflow as instructions for the
model. Nothing here is parsed back by the service; the orchestration loop only
bounds turns and watches tool results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from config import ScoutConfig

JUNGLESCOUT_CATEGORIES = [
    "Appliances",
    "Arts, Crafts & Sewing",
    "Automotive",
    "Baby",
    "Beauty & Personal Care",
    "Camera & Photo",
    "Cell Phones & Accessories",
    "Clothing, Shoes & Jewelry",
    "Computers & Accessories",
    "Electronics",
    "Grocery & Gourmet Food",
    "Health & Household",
    "Home & Kitchen",
    "Industrial & Scientific",
    "Kitchen & Dining",
    "Musical Instruments",
    "Office Products",
    "Patio, Lawn & Garden",
    "Pet Supplies",
    "Sports & Outdoors",
    "Tools & Home Improvement",
    "Toys & Games",
    "Video Games",
]


@dataclass(frozen=True)
class PromptDates:
    today: str
    end_date: str
    start_date: str


def prompt_dates(reference_date: Optional[date] = None) -> PromptDates:
    """Sales-estimate window: 30 days ending yesterday (the API rejects ranges ending today)."""
    today = reference_date or date.today()
    return PromptDates(
        today=today.isoformat(),
        end_date=(today - timedelta(days=1)).isoformat(),
        start_date=(today - timedelta(days=ScoutConfig.LOOKBACK_DAYS)).isoformat(),
    )


def build_system_prompt(reference_date: Optional[date] = None) -> str:
    dates = prompt_dates(reference_date)
    threshold = f"${ScoutConfig.DEMAND_THRESHOLD_USD:,}"
    search_tool, execute_tool = ScoutConfig.ALLOWED_META_TOOLS
    bash_tool, workbench_tool = ScoutConfig.EXCLUDED_TOOL_NAMES
    categories = ", ".join(f'"{name}"' for name in JUNGLESCOUT_CATEGORIES)

    return (
        "You are an e-commerce product research agent for Shopify founders.\n"
        f"Today's date is {dates.today}.\n\n"
        "MANDATORY EXECUTION ORDER\n"
        "Phase 1 - Demand validation (Jungle Scout):\n"
        "  1. Find the top Amazon listings for the product with JUNGLESCOUT_QUERY_THE_PRODUCT_DATABASE.\n"
        "  2. Pull sales estimates for the leading ASINs with JUNGLESCOUT_RETRIEVE_SALES_ESTIMATES_DATA.\n"
        "  Finish ALL Phase 1 calls before evaluating anything.\n"
        "Phase 2 - Evaluate:\n"
        f"  - Estimate monthly revenue for the niche. The demand threshold is {threshold}/month.\n"
        f"  - If revenue is below {threshold}/month, report FAIL (insufficient demand) and STOP. "
        "Do not call any Semrush tool.\n"
        f"  - If revenue is at or above {threshold}/month, report PASS (demand validated) and continue.\n"
        "Phase 3 - Competitor discovery (Semrush), only after a PASS:\n"
        "  1. Find DTC brands ranking for the product keyword with SEMRUSH_ORGANIC_RESULTS.\n"
        "  2. For each competitor domain, check keywords with SEMRUSH_DOMAIN_ORGANIC_SEARCH_KEYWORDS.\n"
        "  Ignore marketplaces (amazon.com, walmart.com, ebay.com, target.com, google.com).\n\n"
        "TOOL RULES\n"
        f"- NEVER use {bash_tool}.\n"
        f"- NEVER use {workbench_tool}.\n"
        f"- Use ONLY {search_tool} to discover tool slugs and {execute_tool} to run them.\n"
        "- Do not write code. Do not retry a tool more than twice.\n\n"
        "PARAMETER FORMATS\n"
        "JUNGLESCOUT_QUERY_THE_PRODUCT_DATABASE:\n"
        '  - marketplace: "us" (string)\n'
        '  - include_keywords: ["<product keyword>"] (array of strings, never a plain string)\n'
        f"  - categories: array of strings, chosen only from: {categories}\n"
        "  - page_size: 10 (integer)\n"
        "JUNGLESCOUT_RETRIEVE_SALES_ESTIMATES_DATA:\n"
        '  - marketplace: "us" (string)\n'
        '  - asin: "<single ASIN>" (string, one ASIN per call)\n'
        f'  - start_date: "{dates.start_date}" (string, YYYY-MM-DD)\n'
        f'  - end_date: "{dates.end_date}" (string, YYYY-MM-DD, never today)\n'
        "SEMRUSH_ORGANIC_RESULTS:\n"
        '  - phrase: "<product keyword>" (string, not an array)\n'
        '  - database: "us" (string)\n'
        "SEMRUSH_DOMAIN_ORGANIC_SEARCH_KEYWORDS:\n"
        '  - domain: "<competitor domain>" (string, bare hostname such as brand.com)\n'
        '  - database: "us" (string)\n\n'
        "FINAL REPORT\n"
        "1. Demand finding: estimated monthly revenue as $X/mo, trend (growing, stable or declining), "
        "and PASS or FAIL against the threshold.\n"
        "2. Up to 3 DTC competitor domains (bare hostnames).\n"
        "3. For each competitor, its main traffic source: Organic (SEO) or Paid (Ads).\n"
        "4. A strategic recommendation for a founder entering this niche.\n"
        "Keep the report concise and in plain Markdown."
    )


def build_analysis_task(product_name: str) -> str:
    threshold = f"${ScoutConfig.DEMAND_THRESHOLD_USD:,}"
    return (
        f'Analyze the product niche "{product_name}".\n'
        "Start with Jungle Scout demand validation and complete every Phase 1 call first. "
        f"Only if monthly revenue clears {threshold}/month, move on to Semrush competitor discovery. "
        "Finish with the final report in the required format."
    )


CHART_SYSTEM_PROMPT = (
    "You convert e-commerce market analyses into chart data.\n"
    "Respond with JSON only. No prose, no Markdown fences.\n"
    "Return exactly this object shape:\n"
    "{\n"
    '  "revenueHistory": [{"month": "Jan", "value": 12000}, ...],\n'
    '  "trafficDistribution": [{"name": "Organic SEO", "value": 45}, ...]\n'
    "}\n"
    "Rules:\n"
    "- revenueHistory: 6 consecutive months ending with the latest month, values in USD as numbers, "
    "consistent with the revenue and trend stated in the analysis.\n"
    "- trafficDistribution: 3 to 5 channels whose values are percentages summing to about 100.\n"
    "- If the analysis has no usable numbers, return empty arrays for both keys."
)


def build_chart_prompt(analysis_text: str, product_name: str) -> str:
    return f"Product: {product_name}\n\nAnalysis:\n{analysis_text}"

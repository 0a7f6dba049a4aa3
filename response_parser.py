"""
Best-effort extraction of dashboard signals from the agent's narrative.

Every helper returns a documented default instead of raising, so a transcript
with no numbers still produces a complete record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from models import Competitor, OpportunityLevel, TrafficSource, Trend

SEE_ANALYSIS = "See analysis"
MAX_COMPETITORS = 3
EXCLUDED_MARKETPLACE_DOMAINS = frozenset(
    {"amazon.com", "walmart.com", "ebay.com", "target.com", "google.com"}
)

REVENUE_PATTERN = re.compile(r"\$[\d,]+(?:\.\d+)?[kK]?(?:/month|/mo)?")
GROWTH_PATTERN = re.compile(r"growing|increasing|upward|trending up", re.IGNORECASE)
DECLINE_PATTERN = re.compile(r"declining|decreasing|downward|falling", re.IGNORECASE)
HIGH_DEMAND_PATTERN = re.compile(r"high demand|strong demand|pass|validated", re.IGNORECASE)
LOW_DEMAND_PATTERN = re.compile(r"low demand|weak demand|fail|insufficient", re.IGNORECASE)
DOMAIN_PATTERN = re.compile(r"\b[a-z0-9-]+\.com\b")
PAID_WINDOW_CHARS = 120

HIGH_DEMAND_SCORE = 80
LOW_DEMAND_SCORE = 25
MEDIUM_DEMAND_SCORE = 50


@dataclass
class ResponseSignals:
    revenue: str = SEE_ANALYSIS
    trend: Trend = Trend.STABLE
    opportunity_level: OpportunityLevel = OpportunityLevel.MEDIUM
    demand_score: int = MEDIUM_DEMAND_SCORE
    competitors: List[Competitor] = field(default_factory=list)


def extract_revenue(text: str) -> str:
    match = REVENUE_PATTERN.search(text or "")
    return match.group(0) if match else SEE_ANALYSIS


def determine_trend(text: str) -> Trend:
    # Growth wins when both vocabularies appear.
    if GROWTH_PATTERN.search(text or ""):
        return Trend.UP
    if DECLINE_PATTERN.search(text or ""):
        return Trend.DOWN
    return Trend.STABLE


def classify_opportunity(text: str) -> Tuple[OpportunityLevel, int]:
    if HIGH_DEMAND_PATTERN.search(text or ""):
        return OpportunityLevel.HIGH, HIGH_DEMAND_SCORE
    if LOW_DEMAND_PATTERN.search(text or ""):
        return OpportunityLevel.LOW, LOW_DEMAND_SCORE
    return OpportunityLevel.MEDIUM, MEDIUM_DEMAND_SCORE


def _traffic_source(domain: str, text: str) -> TrafficSource:
    paid_nearby = re.compile(
        re.escape(domain) + r"[^\n]{0,%d}?\b(?:paid|ads)\b" % PAID_WINDOW_CHARS,
        re.IGNORECASE,
    )
    return TrafficSource.PAID if paid_nearby.search(text) else TrafficSource.ORGANIC


def extract_competitor_domains(text: str) -> List[str]:
    """Unique non-marketplace .com hosts in order of first appearance, capped at three."""
    domains: List[str] = []
    for domain in DOMAIN_PATTERN.findall(text or ""):
        if domain in domains or domain.lower() in EXCLUDED_MARKETPLACE_DOMAINS:
            continue
        domains.append(domain)
        if len(domains) == MAX_COMPETITORS:
            break
    return domains


def extract_competitors(text: str) -> List[Competitor]:
    return [
        Competitor(
            domain=domain,
            traffic=SEE_ANALYSIS,
            traffic_source=_traffic_source(domain, text or ""),
            top_keywords=[],
        )
        for domain in extract_competitor_domains(text)
    ]


def extract_signals(text: str) -> ResponseSignals:
    text = text if isinstance(text, str) else ""
    opportunity, score = classify_opportunity(text)
    return ResponseSignals(
        revenue=extract_revenue(text),
        trend=determine_trend(text),
        opportunity_level=opportunity,
        demand_score=score,
        competitors=extract_competitors(text),
    )

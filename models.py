from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Trend(str, Enum):
    """Directional demand signal"""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class OpportunityLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TrafficSource(str, Enum):
    """Dominant acquisition channel for a competitor"""
    ORGANIC = "Organic (SEO)"
    PAID = "Paid (Ads)"


class ScoutModel(BaseModel):
    """Base model serialised with camelCase keys for the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Competitor(ScoutModel):
    domain: str
    traffic: str = "See analysis"
    traffic_source: TrafficSource = TrafficSource.ORGANIC
    top_keywords: List[str] = Field(default_factory=list)


class RevenuePoint(ScoutModel):
    month: str
    value: float


class TrafficShare(ScoutModel):
    name: str
    value: float


class ChartData(ScoutModel):
    """Numeric series synthesised from the narrative analysis."""
    revenue_history: List[RevenuePoint] = Field(default_factory=list)
    traffic_distribution: List[TrafficShare] = Field(default_factory=list)


class AnalysisResult(ScoutModel):
    product_name: str = Field(min_length=1)
    demand_score: int = Field(ge=0, le=100, description="Coarse proxy for market demand")
    revenue: str
    trend: Trend = Trend.STABLE
    opportunity_level: OpportunityLevel = OpportunityLevel.MEDIUM
    recommendation: str = ""
    revenue_history: List[RevenuePoint] = Field(default_factory=list)
    traffic_distribution: List[TrafficShare] = Field(default_factory=list)
    competitors: List[Competitor] = Field(default_factory=list, max_length=3)

    @field_validator("product_name")
    def validate_product_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("product name cannot be blank")
        return v

"""
Pydantic models for the compliance checker API and its limit table.
Wire format is camelCase to match the React form; Python code uses snake_case.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Mapping, Optional, Literal, Union
from datetime import datetime
from types import MappingProxyType


Industry = Literal["T", "L"]
ComplianceTier = Literal["F", "P", "A"]
DischargeType = Literal["Direct", "Indirect", "ZLD"]
ParameterCategory = Literal["mrsl", "heavy_metals", "conventional", "sludge"]

RawValue = Union[str, float, None]

FOUNDATIONAL: ComplianceTier = "F"


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Limit table
# ---------------------------------------------------------------------------

class LimitRange(BaseModel):
    min: float
    max: float

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{_fmt_limit(self.min)}-{_fmt_limit(self.max)}"


LimitValue = Union[float, LimitRange]


class FlatLimits(BaseModel):
    """Limits keyed by compliance tier. Foundational is always present."""
    tiers: Mapping[ComplianceTier, LimitValue]

    model_config = {"frozen": True}

    @field_validator("tiers", mode="after")
    @classmethod
    def _read_only_tiers(cls, tiers):
        return MappingProxyType(dict(tiers))

    @model_validator(mode="after")
    def _require_foundational(self):
        if FOUNDATIONAL not in self.tiers:
            raise ValueError("Flat limit spec must define the Foundational tier")
        return self


class IndustryLimits(BaseModel):
    """Limits that differ by industry; each branch is a flat spec."""
    industries: Mapping[Industry, FlatLimits]

    model_config = {"frozen": True}

    @field_validator("industries", mode="after")
    @classmethod
    def _read_only_industries(cls, industries):
        return MappingProxyType(dict(industries))


LimitSpec = Union[FlatLimits, IndustryLimits]


class ParameterDefinition(CamelModel):
    id: str
    display_name: str
    category: ParameterCategory
    unit: str = ""
    is_range: bool = False

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "frozen": True}


def _fmt_limit(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def format_limit(limit: Optional[LimitValue]) -> str:
    if limit is None:
        return "N/A"
    if isinstance(limit, LimitRange):
        return str(limit)
    return _fmt_limit(limit)


# ---------------------------------------------------------------------------
# Session and evaluation
# ---------------------------------------------------------------------------

class EvaluationContext(CamelModel):
    industry: Industry = "T"
    compliance_tier: ComplianceTier = "F"
    discharge_type: DischargeType = "Direct"


class ComplianceSession(EvaluationContext):
    inputs: dict[str, RawValue] = Field(default_factory=dict)

    def context(self) -> EvaluationContext:
        return EvaluationContext(
            industry=self.industry,
            compliance_tier=self.compliance_tier,
            discharge_type=self.discharge_type,
        )


class EvaluationResult(CamelModel):
    param_id: str
    display_name: str
    category: ParameterCategory
    measured_value: Optional[float] = None
    resolved_limit: Optional[LimitValue] = None
    compliant: bool
    unit: str = ""
    limit_display: str = "N/A"


class ChartPoint(CamelModel):
    id: str
    name: str
    category: ParameterCategory
    value: float
    limit: float
    min_limit: Optional[float] = None
    unit: str = ""


class EvaluationOutcome(CamelModel):
    results: list[EvaluationResult]
    overall_compliant: bool
    chart_series: list[ChartPoint]


class ValidationWarning(CamelModel):
    field: str
    section: str
    message: str
    severity: Literal["info", "warning"] = "warning"


class CheckResponse(EvaluationOutcome):
    chart_groups: dict[str, list[ChartPoint]] = Field(default_factory=dict)
    warnings: list[ValidationWarning] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Persistence and export documents
# ---------------------------------------------------------------------------

class SavedDocument(CamelModel):
    inputs: dict[str, RawValue] = Field(default_factory=dict)
    industry: Industry = "T"
    compliance_tier: ComplianceTier = "F"
    discharge_type: DischargeType = "Direct"
    timestamp: Optional[datetime] = None


class ExportDocument(CamelModel):
    inputs: dict[str, RawValue]
    results: list[EvaluationResult]
    industry: Industry
    compliance_tier: ComplianceTier
    discharge_type: DischargeType
    overall_compliant: bool
    timestamp: datetime


class MessageResponse(CamelModel):
    message: str


class LoadResponse(CamelModel):
    message: str
    session: ComplianceSession
    saved_at: Optional[datetime] = None
    outcome: CheckResponse


# ---------------------------------------------------------------------------
# Form catalogue
# ---------------------------------------------------------------------------

class ParameterHint(CamelModel):
    id: str
    display_name: str
    unit: str = ""
    is_range: bool = False
    resolved_limit: Optional[LimitValue] = None
    limit_hint: str
    placeholder: str = ""


class ParameterGroup(CamelModel):
    category: ParameterCategory
    label: str
    parameters: list[ParameterHint]


class OptionItem(CamelModel):
    value: str
    label: str


class OptionsResponse(CamelModel):
    industries: list[OptionItem]
    compliance_tiers: list[OptionItem]
    discharge_types: list[OptionItem]

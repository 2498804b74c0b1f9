"""
Limit resolution and compliance evaluation against the ZDHC limit table.

Everything here is a pure function of its arguments. Unmeasured values and
undefined limits are compliant by default, so leaving a field blank never
produces a failure.
"""
import math
import re
import logging
from typing import Iterable, Mapping, Optional

from knowledge_base.zdhc_limits import (
    CHART_GROUPS,
    LIMIT_TABLE,
    PARAMETER_DEFINITIONS,
    UNCHARTED_CATEGORIES,
    category_labels,
    parameters_by_category,
)
from models.schemas import (
    FOUNDATIONAL,
    ChartPoint,
    EvaluationContext,
    EvaluationOutcome,
    EvaluationResult,
    FlatLimits,
    IndustryLimits,
    LimitRange,
    LimitSpec,
    LimitValue,
    ParameterDefinition,
    ParameterGroup,
    ParameterHint,
    RawValue,
    format_limit,
)

logger = logging.getLogger(__name__)

# Leading decimal number, the way a browser's parseFloat reads form input.
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def resolve_limit(
    spec: Optional[LimitSpec],
    industry: str,
    tier: str,
) -> Optional[LimitValue]:
    if spec is None:
        return None

    if isinstance(spec, IndustryLimits):
        flat = spec.industries.get(industry)
        if flat is None:
            return None
    elif isinstance(spec, FlatLimits):
        flat = spec
    else:
        raise TypeError(f"Unsupported limit spec: {type(spec).__name__}")

    limit = flat.tiers.get(tier)
    if limit is not None:
        return limit
    # Not every parameter defines P/A; relax to the baseline tier.
    return flat.tiers.get(FOUNDATIONAL)


def parse_measured(raw: RawValue) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_NUMBER_RE.match(str(raw).strip())
        if not match:
            return None
        value = float(match.group(0))
    if not math.isfinite(value):
        return None
    return value


def classify(
    value: Optional[float],
    limit: Optional[LimitValue],
    is_range: bool,
) -> bool:
    if value is None or limit is None:
        return True
    if isinstance(limit, LimitRange):
        if not is_range:
            logger.warning("Range limit %s applied to a scalar parameter", limit)
        return limit.min <= value <= limit.max
    if is_range:
        logger.warning("Scalar limit %s applied to a range parameter; using it as a ceiling", limit)
    return value <= limit


def _chart_point(
    definition: ParameterDefinition,
    value: float,
    limit: LimitValue,
) -> ChartPoint:
    if isinstance(limit, LimitRange):
        return ChartPoint(
            id=definition.id,
            name=definition.display_name,
            category=definition.category,
            value=value,
            limit=limit.max,
            min_limit=limit.min,
            unit=definition.unit,
        )
    return ChartPoint(
        id=definition.id,
        name=definition.display_name,
        category=definition.category,
        value=value,
        limit=limit,
        unit=definition.unit,
    )


def evaluate_all(
    inputs: Mapping[str, RawValue],
    context: EvaluationContext,
    parameter_definitions: Iterable[ParameterDefinition] = PARAMETER_DEFINITIONS,
    limit_table: Mapping[str, LimitSpec] = LIMIT_TABLE,
) -> EvaluationOutcome:
    results: list[EvaluationResult] = []
    chart_series: list[ChartPoint] = []
    overall_compliant = True

    for definition in parameter_definitions:
        value = parse_measured(inputs.get(definition.id))
        limit = resolve_limit(
            limit_table.get(definition.id),
            context.industry,
            context.compliance_tier,
        )
        compliant = classify(value, limit, definition.is_range)

        results.append(EvaluationResult(
            param_id=definition.id,
            display_name=definition.display_name,
            category=definition.category,
            measured_value=value,
            resolved_limit=limit,
            compliant=compliant,
            unit=definition.unit,
            limit_display=format_limit(limit),
        ))
        if not compliant:
            overall_compliant = False

        if (
            value is not None
            and limit is not None
            and definition.category not in UNCHARTED_CATEGORIES
        ):
            chart_series.append(_chart_point(definition, value, limit))

    logger.debug(
        "Evaluated %d parameters (%s/%s): %d non-compliant",
        len(results),
        context.industry,
        context.compliance_tier,
        sum(1 for r in results if not r.compliant),
    )

    return EvaluationOutcome(
        results=results,
        overall_compliant=overall_compliant,
        chart_series=chart_series,
    )


def chart_groups(chart_series: Iterable[ChartPoint]) -> dict[str, list[ChartPoint]]:
    groups: dict[str, list[ChartPoint]] = {name: [] for name in CHART_GROUPS}
    for point in chart_series:
        for name, categories in CHART_GROUPS.items():
            if point.category in categories:
                groups[name].append(point)
                break
    return groups


def _placeholder(limit: Optional[LimitValue]) -> str:
    if limit is None:
        return ""
    if isinstance(limit, LimitRange):
        return str(limit)
    return f"{limit * 0.8:.2f}"


def _limit_hint(
    definition: ParameterDefinition,
    limit: Optional[LimitValue],
    industry: str,
    tier: str,
) -> str:
    if limit is None:
        return "Limit: N/A"
    text = f"{format_limit(limit)} {definition.unit}".strip()
    # MRSL and sludge limits are universal, so the selectors are not shown.
    if definition.category in ("mrsl", "sludge"):
        return f"Limit: {text}"
    return f"Limit ({industry}, {tier}): {text}"


def describe_parameters(
    industry: str,
    tier: str,
    parameter_definitions: Iterable[ParameterDefinition] = PARAMETER_DEFINITIONS,
    limit_table: Mapping[str, LimitSpec] = LIMIT_TABLE,
) -> list[ParameterGroup]:
    groups = []
    for category, definitions in parameters_by_category(parameter_definitions).items():
        hints = []
        for definition in definitions:
            limit = resolve_limit(limit_table.get(definition.id), industry, tier)
            hints.append(ParameterHint(
                id=definition.id,
                display_name=definition.display_name,
                unit=definition.unit,
                is_range=definition.is_range,
                resolved_limit=limit,
                limit_hint=_limit_hint(definition, limit, industry, tier),
                placeholder=_placeholder(limit),
            ))
        if hints:
            groups.append(ParameterGroup(
                category=category,
                label=category_labels.get(category, category),
                parameters=hints,
            ))
    return groups

from typing import Any, Iterable, Mapping

from knowledge_base.zdhc_limits import PARAMETER_DEFINITIONS, category_labels
from models.schemas import ParameterDefinition, RawValue
from services.compliance import parse_measured


def _is_blank(raw: RawValue) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def validate_inputs(
    inputs: Mapping[str, RawValue],
    definitions: Iterable[ParameterDefinition] = PARAMETER_DEFINITIONS,
) -> dict[str, Any]:
    """
    Drop unknown parameter ids and flag entries the evaluator will read as
    "not measured". Warnings are advisory; evaluation treats the same values
    identically whether or not they are flagged.
    """
    by_id = {d.id: d for d in definitions}
    sanitized: dict[str, RawValue] = {}
    warnings: list[dict] = []

    for param_id, raw in inputs.items():
        definition = by_id.get(param_id)
        if definition is None:
            warnings.append({
                "field": param_id,
                "section": "Inputs",
                "message": f'Unknown parameter "{param_id}" ignored',
                "severity": "info",
            })
            continue

        sanitized[param_id] = raw
        if _is_blank(raw):
            continue

        section = category_labels.get(definition.category, definition.category)
        value = parse_measured(raw)
        if value is None:
            warnings.append({
                "field": definition.display_name,
                "section": section,
                "message": f'"{raw}" is not a number; treated as not measured',
                "severity": "warning",
            })
        elif value < 0:
            warnings.append({
                "field": definition.display_name,
                "section": section,
                "message": "Negative measured value; check the entry",
                "severity": "warning",
            })

    return {"inputs": sanitized, "warnings": warnings}

"""
ZDHC Wastewater Guidelines V2.2 limits (expanded demonstration subset).

Units: MRSL substances in ug/L, heavy metals and conventional parameters in
mg/L unless stated, sludge in mg/kg unless stated. Industry codes are
T (Textile) and L (Leather); tier codes are F (Foundational), P (Progressive)
and A (Aspirational).
"""
from types import MappingProxyType
from typing import Mapping, Optional

from models.schemas import (
    FlatLimits,
    IndustryLimits,
    LimitRange,
    LimitSpec,
    ParameterCategory,
    ParameterDefinition,
)


INDUSTRY_LABELS: dict[str, str] = {
    "T": "Textile",
    "L": "Leather",
}

TIER_LABELS: dict[str, str] = {
    "F": "Foundational",
    "P": "Progressive",
    "A": "Aspirational",
}

DISCHARGE_TYPE_LABELS: dict[str, str] = {
    "Direct": "Direct Discharge",
    "Indirect": "Indirect Discharge (with/without pretreatment)",
    "ZLD": "Zero Liquid Discharge (ZLD)",
}

category_labels: dict[str, str] = {
    "mrsl": "ZDHC MRSL Substances (µg/L)",
    "heavy_metals": "Heavy Metals (mg/L)",
    "conventional": "Conventional Parameters (Discharged Wastewater)",
    "sludge": "Sludge Parameters (Simplified)",
}

category_order: list[ParameterCategory] = [
    "mrsl",
    "heavy_metals",
    "conventional",
    "sludge",
]

# Chart panels rendered by the form; sludge is never charted.
CHART_GROUPS: dict[str, tuple[str, ...]] = {
    "substances": ("mrsl", "heavy_metals"),
    "conventional": ("conventional",),
}

UNCHARTED_CATEGORIES = frozenset({"sludge"})


# ---------------------------------------------------------------------------
# Raw limit data
# ---------------------------------------------------------------------------

# Reporting limits for untreated wastewater; Foundational only.
_MRSL_LIMITS = {
    "np": {"F": 5}, "npeo": {"F": 5}, "op": {"F": 5}, "opeo": {"F": 5},
    "triclosan": {"F": 100}, "permethrin": {"F": 500},
    "sccps": {"F": 25}, "mccps": {"F": 500}, "pcp": {"F": 0.5},
    "benzene": {"F": 1}, "toluene": {"F": 1}, "xylene": {"F": 1},
    "dehp": {"F": 10}, "pfos": {"F": 0.01}, "pfoa": {"F": 1},
    "benzidine": {"F": 0.1}, "o_toluidine": {"F": 0.1},
}

_HEAVY_METAL_LIMITS = {
    "arsenic": {"T": {"F": 0.05, "P": 0.01, "A": 0.005}, "L": {"F": 0.05, "P": 0.01, "A": 0.005}},
    "cadmium": {"T": {"F": 0.01, "P": 0.005, "A": 0.001}, "L": {"F": 0.01, "P": 0.005, "A": 0.001}},
    "chromiumVI": {"T": {"F": 0.05, "P": 0.01, "A": 0.005}, "L": {"F": 0.15, "P": 0.05, "A": 0.01}},
    "totalChromium": {"T": {"F": 0.2, "P": 0.1, "A": 0.05}, "L": {"F": 0.5, "P": 0.2, "A": 0.1}},
    "copper": {"T": {"F": 0.1, "P": 0.05, "A": 0.02}, "L": {"F": 0.1, "P": 0.05, "A": 0.02}},
    "lead": {"T": {"F": 0.05, "P": 0.01, "A": 0.005}, "L": {"F": 0.05, "P": 0.01, "A": 0.005}},
    "mercury": {"T": {"F": 0.01, "P": 0.005, "A": 0.001}, "L": {"F": 0.01, "P": 0.005, "A": 0.001}},
    "nickel": {"T": {"F": 0.2, "P": 0.1, "A": 0.05}, "L": {"F": 0.2, "P": 0.1, "A": 0.05}},
    "zinc": {"T": {"F": 0.5, "P": 0.2, "A": 0.1}, "L": {"F": 0.5, "P": 0.2, "A": 0.1}},
}

_PH_RANGE = {"min": 6, "max": 9}

_CONVENTIONAL_LIMITS = {
    "ph": {
        "T": {"F": _PH_RANGE, "P": _PH_RANGE, "A": _PH_RANGE},
        "L": {"F": _PH_RANGE, "P": _PH_RANGE, "A": _PH_RANGE},
    },
    "temp_diff": {"T": {"F": 15, "P": 10, "A": 5}, "L": {"F": 15, "P": 10, "A": 5}},
    "e_coli": {"T": {"F": 126, "P": 100, "A": 50}, "L": {"F": 126, "P": 100, "A": 50}},
    "bod5": {"T": {"F": 30, "P": 20, "A": 10}, "L": {"F": 50, "P": 30, "A": 15}},
    "cod": {"T": {"F": 150, "P": 80, "A": 40}, "L": {"F": 250, "P": 150, "A": 75}},
    "tss": {"T": {"F": 50, "P": 30, "A": 15}, "L": {"F": 70, "P": 40, "A": 20}},
    "aox": {"T": {"F": 3, "P": 1, "A": 0.5}, "L": {"F": 3, "P": 1, "A": 0.5}},
    "oil_grease": {"T": {"F": 10, "P": 5, "A": 2}, "L": {"F": 20, "P": 10, "A": 5}},
    "total_phenols": {"T": {"F": 0.5, "P": 0.1, "A": 0.05}, "L": {"F": 0.5, "P": 0.1, "A": 0.05}},
    "total_nitrogen": {"T": {"F": 20, "P": 10, "A": 5}, "L": {"F": 35, "P": 20, "A": 10}},
    "total_phosphorus": {"T": {"F": 3, "P": 1, "A": 0.5}, "L": {"F": 3, "P": 1, "A": 0.5}},
    "sulphide": {"T": {"F": 0.5, "P": 0.1, "A": 0.05}, "L": {"F": 1, "P": 0.2, "A": 0.1}},
}

# Simplified: real sludge compliance depends on disposal pathway and leachate testing.
_SLUDGE_LIMITS = {
    "np_sludge": {"F": 0.4},
    "pcp_sludge": {"F": 0.2},
    "arsenic_sludge": {"F": 5},
    "chromiumVI_sludge": {"F": 0.5},
    "mercury_sludge": {"F": 0.1},
    "ph_sludge": {"F": {"min": 5, "max": 11}},
    "faecal_coliform": {"F": 1000},
}


# ---------------------------------------------------------------------------
# Parameter definitions, in form order
# ---------------------------------------------------------------------------

_MRSL_PARAMS = [
    ("np", "Nonylphenol (NP)", "µg/L"),
    ("npeo", "Nonylphenol Ethoxylates (NPEO)", "µg/L"),
    ("op", "Octylphenol (OP)", "µg/L"),
    ("opeo", "Octylphenol Ethoxylates (OPEO)", "µg/L"),
    ("triclosan", "Triclosan", "µg/L"),
    ("permethrin", "Permethrin", "µg/L"),
    ("sccps", "SCCPs", "µg/L"),
    ("mccps", "MCCPs", "µg/L"),
    ("pcp", "Pentachlorophenol (PCP)", "µg/L"),
    ("benzene", "Benzene", "µg/L"),
    ("toluene", "Toluene", "µg/L"),
    ("xylene", "Xylene", "µg/L"),
    ("dehp", "DEHP (Phthalate)", "µg/L"),
    ("pfos", "PFOS", "µg/L"),
    ("pfoa", "PFOA", "µg/L"),
    ("benzidine", "Benzidine", "µg/L"),
    ("o_toluidine", "o-Toluidine", "µg/L"),
]

_HEAVY_METAL_PARAMS = [
    ("arsenic", "Arsenic", "mg/L"),
    ("cadmium", "Cadmium", "mg/L"),
    ("chromiumVI", "Chromium (VI)", "mg/L"),
    ("totalChromium", "Chromium, total", "mg/L"),
    ("copper", "Copper", "mg/L"),
    ("lead", "Lead", "mg/L"),
    ("mercury", "Mercury", "mg/L"),
    ("nickel", "Nickel", "mg/L"),
    ("zinc", "Zinc", "mg/L"),
]

_CONVENTIONAL_PARAMS = [
    ("ph", "pH", ""),
    ("temp_diff", "Temperature Difference (Δ°C)", "°C"),
    ("e_coli", "E.coli", "MPN/100-ml"),
    ("bod5", "BOD5", "mg/L"),
    ("cod", "COD", "mg/L"),
    ("tss", "TSS", "mg/L"),
    ("aox", "AOX", "mg/L"),
    ("oil_grease", "Oil and Grease", "mg/L"),
    ("total_phenols", "Total Phenols", "mg/L"),
    ("total_nitrogen", "Total Nitrogen", "mg/L"),
    ("total_phosphorus", "Total Phosphorus", "mg/L"),
    ("sulphide", "Sulphide", "mg/L"),
]

_SLUDGE_PARAMS = [
    ("np_sludge", "Nonylphenol (Sludge)", "mg/kg"),
    ("pcp_sludge", "PCP (Sludge)", "mg/kg"),
    ("arsenic_sludge", "Arsenic (Sludge)", "mg/kg"),
    ("chromiumVI_sludge", "Chromium (VI) (Sludge)", "mg/kg"),
    ("mercury_sludge", "Mercury (Sludge)", "mg/kg"),
    ("ph_sludge", "pH (Sludge)", ""),
    ("faecal_coliform", "Faecal Coliform (Sludge)", "MPN/g"),
]

RANGE_PARAMETERS = frozenset({"ph", "ph_sludge"})


def _limit_value(raw):
    if isinstance(raw, dict):
        return LimitRange(min=raw["min"], max=raw["max"])
    return float(raw)


def _flat_limits(raw: dict) -> FlatLimits:
    return FlatLimits(tiers={tier: _limit_value(v) for tier, v in raw.items()})


def _build_spec(raw: dict) -> LimitSpec:
    if set(raw) <= set(INDUSTRY_LABELS):
        return IndustryLimits(
            industries={industry: _flat_limits(tiers) for industry, tiers in raw.items()}
        )
    return _flat_limits(raw)


def _build_definitions() -> tuple[ParameterDefinition, ...]:
    sections = [
        ("mrsl", _MRSL_PARAMS),
        ("heavy_metals", _HEAVY_METAL_PARAMS),
        ("conventional", _CONVENTIONAL_PARAMS),
        ("sludge", _SLUDGE_PARAMS),
    ]
    definitions = []
    for category, params in sections:
        for param_id, name, unit in params:
            definitions.append(ParameterDefinition(
                id=param_id,
                display_name=name,
                category=category,
                unit=unit,
                is_range=param_id in RANGE_PARAMETERS,
            ))
    return tuple(definitions)


PARAMETER_DEFINITIONS: tuple[ParameterDefinition, ...] = _build_definitions()

LIMIT_TABLE: Mapping[str, LimitSpec] = MappingProxyType({
    param_id: _build_spec(raw)
    for table in (_MRSL_LIMITS, _HEAVY_METAL_LIMITS, _CONVENTIONAL_LIMITS, _SLUDGE_LIMITS)
    for param_id, raw in table.items()
})

_DEFINITIONS_BY_ID = {d.id: d for d in PARAMETER_DEFINITIONS}


def get_parameter(param_id: str) -> Optional[ParameterDefinition]:
    return _DEFINITIONS_BY_ID.get(param_id)


def parameters_by_category(
    definitions=PARAMETER_DEFINITIONS,
) -> dict[str, list[ParameterDefinition]]:
    grouped: dict[str, list[ParameterDefinition]] = {c: [] for c in category_order}
    for definition in definitions:
        grouped.setdefault(definition.category, []).append(definition)
    return grouped


def blank_inputs() -> dict[str, str]:
    return {d.id: "" for d in PARAMETER_DEFINITIONS}

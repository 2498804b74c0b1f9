"""Integrity checks for the hardcoded ZDHC limit table."""
import pytest
from pydantic import ValidationError

from knowledge_base.zdhc_limits import (
    LIMIT_TABLE,
    PARAMETER_DEFINITIONS,
    blank_inputs,
    category_order,
    get_parameter,
    parameters_by_category,
)
from models.schemas import FlatLimits, IndustryLimits, LimitRange


class TestParameterDefinitions:
    def test_ids_are_unique(self):
        ids = [d.id for d in PARAMETER_DEFINITIONS]
        assert len(ids) == len(set(ids))

    def test_category_sizes(self):
        grouped = parameters_by_category()
        assert [len(grouped[c]) for c in category_order] == [17, 9, 12, 7]

    def test_declaration_order_is_grouped_by_category(self):
        categories = [d.category for d in PARAMETER_DEFINITIONS]
        first_seen = list(dict.fromkeys(categories))
        assert first_seen == category_order
        assert PARAMETER_DEFINITIONS[0].id == "np"
        assert PARAMETER_DEFINITIONS[-1].id == "faecal_coliform"

    def test_only_ph_parameters_are_ranges(self):
        assert {d.id for d in PARAMETER_DEFINITIONS if d.is_range} == {"ph", "ph_sludge"}

    def test_get_parameter(self):
        assert get_parameter("chromiumVI").display_name == "Chromium (VI)"
        assert get_parameter("unknown") is None

    def test_blank_inputs_cover_every_parameter(self):
        inputs = blank_inputs()
        assert list(inputs) == [d.id for d in PARAMETER_DEFINITIONS]
        assert set(inputs.values()) == {""}


class TestLimitTable:
    def test_every_parameter_has_limits(self):
        assert set(LIMIT_TABLE) == {d.id for d in PARAMETER_DEFINITIONS}

    def test_every_flat_spec_defines_foundational(self):
        for param_id, spec in LIMIT_TABLE.items():
            branches = spec.industries.values() if isinstance(spec, IndustryLimits) else [spec]
            for flat in branches:
                assert "F" in flat.tiers, param_id

    def test_mrsl_and_sludge_are_universal_foundational_only(self):
        for d in PARAMETER_DEFINITIONS:
            if d.category in ("mrsl", "sludge"):
                spec = LIMIT_TABLE[d.id]
                assert isinstance(spec, FlatLimits)
                assert set(spec.tiers) == {"F"}

    def test_metals_and_conventional_are_industry_scoped(self):
        for d in PARAMETER_DEFINITIONS:
            if d.category in ("heavy_metals", "conventional"):
                spec = LIMIT_TABLE[d.id]
                assert isinstance(spec, IndustryLimits)
                assert set(spec.industries) == {"T", "L"}

    def test_range_limits_match_range_parameters(self):
        assert LIMIT_TABLE["ph"].industries["L"].tiers["A"] == LimitRange(min=6, max=9)
        assert LIMIT_TABLE["ph_sludge"].tiers["F"] == LimitRange(min=5, max=11)

    def test_leather_chromium_vi_differs_from_textile(self):
        spec = LIMIT_TABLE["chromiumVI"]
        assert spec.industries["T"].tiers["F"] == 0.05
        assert spec.industries["L"].tiers["F"] == 0.15

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            LIMIT_TABLE["cadmium"] = FlatLimits(tiers={"F": 100.0})
        with pytest.raises(TypeError):
            LIMIT_TABLE["np"].tiers["F"] = 100.0
        with pytest.raises(TypeError):
            del LIMIT_TABLE["chromiumVI"].industries["L"]
        assert LIMIT_TABLE["np"].tiers["F"] == 5

    def test_built_limits_do_not_alias_their_source(self):
        source = {"F": 1.0}
        limits = FlatLimits(tiers=source)
        source["F"] = 2.0
        assert limits.tiers["F"] == 1.0

    def test_flat_spec_without_foundational_is_rejected(self):
        with pytest.raises(ValidationError):
            FlatLimits(tiers={"P": 1.0})

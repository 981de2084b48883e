"""Unit tests for NGS report filtering, sorting and summary."""

import pytest

from oncosaferx.models.ngs import GenomicVariant, NGSReport
from oncosaferx.services.ngs import NGSInterpreter, VariantFilter, generate_sample_report


@pytest.fixture
def interpreter() -> NGSInterpreter:
    return NGSInterpreter(generate_sample_report())


def _ids(variants: list[GenomicVariant]) -> list[str]:
    return [v.id for v in variants]


class TestFilterVariants:
    def test_no_criteria_returns_all(self, interpreter):
        assert _ids(interpreter.filter_variants()) == ["var-1", "var-2", "var-3", "var-4"]

    def test_tier_requires_score(self, interpreter):
        assert _ids(interpreter.filter_variants(tier="Tier I")) == ["var-1", "var-3"]

    def test_significance_excludes_unannotated(self, interpreter):
        assert _ids(interpreter.filter_variants(significance="Pathogenic")) == [
            "var-1",
            "var-2",
            "var-3",
        ]

    def test_actionability_floor_skips_unscored(self, interpreter):
        assert _ids(interpreter.filter_variants(min_actionability=80)) == ["var-1", "var-3", "var-4"]

    def test_evidence_level(self, interpreter):
        assert _ids(interpreter.filter_variants(evidence_level="B")) == ["var-2"]

    def test_criteria_combine(self, interpreter):
        criteria = VariantFilter(tier="Tier I", evidence_level="A", min_actionability=90)

        assert _ids(interpreter.apply_filter(criteria)) == ["var-1"]


class TestSortVariants:
    @pytest.mark.parametrize(
        "by, expected",
        [
            ("actionability", ["var-1", "var-3", "var-2", "var-4"]),
            ("vaf", ["var-2", "var-4", "var-1", "var-3"]),
            ("quality", ["var-1", "var-4", "var-2", "var-3"]),
            ("gene", ["var-1", "var-2", "var-3", "var-4"]),
        ],
    )
    def test_sort_keys(self, interpreter, by, expected):
        assert _ids(interpreter.sort_variants(interpreter.report.variants, by)) == expected

    def test_sort_does_not_mutate_input(self, interpreter):
        variants = interpreter.report.variants
        interpreter.sort_variants(variants, "vaf")

        assert _ids(variants) == ["var-1", "var-2", "var-3", "var-4"]


def test_lookups(interpreter):
    assert interpreter.annotation("var-1").therapeutic_implications[0].drug == "Osimertinib"
    assert interpreter.annotation("var-4") is None
    assert interpreter.actionability("var-3").overall_score == 81.5


def test_summary_of_sample_report(interpreter):
    summary = interpreter.summary()

    assert summary.report_id == "RPT-2024-001"
    assert summary.variant_count == 4
    assert summary.tier_one_count == 2
    assert summary.pathogenic_count == 3
    assert summary.fda_approved_options == 4
    assert summary.tmb == "14.2 mutations/Mb (High)"
    assert summary.msi == "MSS"
    assert summary.hrd == "HRD+"


def test_summary_of_bare_report():
    report = NGSReport(
        id="r",
        patient_id="p",
        sample_id="s",
        test_type="Exome",
        laboratory="Lab",
        report_date="2024-01-01",
    )

    summary = NGSInterpreter(report).summary()

    assert summary.variant_count == 0
    assert summary.tmb is None
    assert summary.msi is None

"""Tests for response parsing."""

from .models import FieldAnalysis
from .parsing import (
    extract_dimension_content,
    extract_falsification_criteria,
    extract_field,
    extract_hypothesis,
    extract_objectives,
    parse_field_analysis,
)

FIELD_JSON = """{
  "primary_field": "Oncology",
  "secondary_fields": ["Genomics", "Dermatology"],
  "objectives": ["Measure chromosomal instability", "Relate it to stage"],
  "interdisciplinary_connections": ["Bioinformatics"],
  "constraints": ["Small cohorts"],
  "initial_scope": "Cutaneous T-cell lymphoma"
}"""


# --- Field detection ---


def test_parse_plain_json():
    analysis = parse_field_analysis(FIELD_JSON)

    assert analysis.primary_field == "Oncology"
    assert analysis.secondary_fields == ["Genomics", "Dermatology"]
    assert analysis.objectives == ["Measure chromosomal instability", "Relate it to stage"]
    assert analysis.constraints == ["Small cohorts"]
    assert analysis.initial_scope == "Cutaneous T-cell lymphoma"


def test_parse_json_wrapped_in_prose():
    text = f"Here is the analysis:\n```json\n{FIELD_JSON}\n```\nLet me know."

    assert parse_field_analysis(text).primary_field == "Oncology"


def test_parse_empty_response_uses_defaults():
    assert parse_field_analysis("") == FieldAnalysis()
    assert parse_field_analysis(None).primary_field == "General Science"


def test_parse_missing_keys_fall_back_to_defaults():
    analysis = parse_field_analysis('{"secondary_fields": ["Immunology"]}')

    assert analysis.primary_field == "General Science"
    assert analysis.initial_scope == "Comprehensive analysis required"
    assert analysis.secondary_fields == ["Immunology"]


def test_parse_malformed_extracts_field_and_objectives():
    text = "Primary field: Oncology. Objectives: map instability, track progression"

    analysis = parse_field_analysis(text)

    assert analysis.primary_field == "Oncology"
    assert analysis.objectives == ["map instability", "track progression"]


def test_extract_field_default():
    assert extract_field("nothing useful here") == "General Science"


def test_extract_objectives_bullets():
    text = "Goals:\n- Quantify aneuploidy\n- Compare stages\n\nOther text"

    assert extract_objectives(text) == ["Quantify aneuploidy", "Compare stages"]


def test_extract_objectives_default():
    assert extract_objectives("") == ["Comprehensive analysis"]
    assert extract_objectives("no labels at all") == ["Comprehensive analysis"]


# --- Dimensions and hypotheses ---


def test_extract_dimension_content():
    text = "Scope: Skin-homing T cells only\nObjectives: Stage comparison"

    assert extract_dimension_content(text, "Scope", "Oncology") == "Skin-homing T cells only"


def test_extract_dimension_content_fallback():
    assert (
        extract_dimension_content("", "Data Needs", "Oncology")
        == "Data Needs analysis for Oncology research context"
    )


def test_extract_hypothesis_by_index():
    text = (
        "hypothesis_1: Instability precedes progression\n"
        "hypothesis_2: Instability correlates with stage\n"
    )

    assert extract_hypothesis(text, 2, "Oncology") == "Instability correlates with stage"


def test_extract_hypothesis_placeholder():
    assert extract_hypothesis("no content", 3, "Oncology") == "Hypothesis 3 for Oncology research context"


def test_extract_falsification_never_empty():
    text = "falsification_1: No difference in copy number across stages"

    assert extract_falsification_criteria(text, 1, "Oncology") == (
        "No difference in copy number across stages"
    )
    assert extract_falsification_criteria(text, 2, "Oncology") == (
        "Specific testable criteria for Hypothesis 2 in Oncology research context"
    )

"""Unit tests for write-path normalization of loosely typed payloads."""

from ailment_tracker.models.ailment import Application, Setting, TreatmentType
from ailment_tracker.services.normalization import (
    normalize_details,
    normalize_diagnostic,
    normalize_side_effect,
    normalize_side_effects,
    normalize_treatment,
)


def test_normalize_side_effect_fills_defaults_and_generates_id():
    side_effect = normalize_side_effect({"name": "Nausea"})

    assert side_effect.id
    assert side_effect.name == "Nausea"
    assert side_effect.description == ""
    assert side_effect.duration == 0
    assert side_effect.intensity == 0
    assert side_effect.severity == 0


def test_normalize_side_effect_keeps_given_id():
    assert normalize_side_effect({"id": "se9"}).id == "se9"


def test_normalize_side_effects_handles_none():
    assert normalize_side_effects(None) == []


def test_normalize_treatment_full_payload():
    treatment = normalize_treatment(
        {
            "id": "t1",
            "name": "Ibuprofen",
            "application": "IV",
            "efficacy": "70",
            "duration": "1h",
            "intensity": 250,
            "type": "holistic",
            "sideEffects": [{"name": "Rash", "severity": -5}],
            "setting": "home",
            "isCurative": True,
        }
    )

    assert treatment.id == "t1"
    assert treatment.application is Application.IV
    assert treatment.efficacy == 70
    assert treatment.duration == 3600
    assert treatment.intensity == 100
    assert treatment.type is TreatmentType.HOLISTIC
    assert treatment.setting is Setting.HOME
    assert treatment.is_curative is True
    assert treatment.is_preventative is False
    assert len(treatment.side_effects) == 1
    assert treatment.side_effects[0].severity == 0
    assert treatment.side_effects[0].id


def test_normalize_treatment_accepts_snake_case_keys():
    treatment = normalize_treatment(
        {"side_effects": [{"id": "s"}], "is_preventative": True}
    )
    assert [s.id for s in treatment.side_effects] == ["s"]
    assert treatment.is_preventative is True


def test_normalize_treatment_falls_back_on_unreadable_values():
    treatment = normalize_treatment(
        {"application": "inhaled", "type": "magic", "setting": "space", "efficacy": "lots"}
    )

    assert treatment.application is Application.ORAL
    assert treatment.type is TreatmentType.SYMPTOM_BASED
    assert treatment.setting is Setting.CLINIC
    assert treatment.efficacy == 0


def test_normalize_diagnostic_has_no_treatment_fields():
    diagnostic = normalize_diagnostic(
        {"name": "MRI", "application": "IV", "isCurative": True, "efficacy": 55}
    )

    assert diagnostic.name == "MRI"
    assert diagnostic.efficacy == 55
    assert not hasattr(diagnostic, "application")
    assert not hasattr(diagnostic, "is_curative")


def test_normalize_details():
    details = normalize_details(
        {"name": "Migraine", "duration": 3600, "intensity": 75, "severity": 60}
    )
    assert details.name == "Migraine"
    assert details.duration == 3600
    assert details.intensity == 75
    assert details.severity == 60
    assert details.description == ""

"""Factories, lookup and validation for ailment aggregates."""

from ailment_tracker.models.ailment import (
    Ailment,
    AilmentDetails,
    Application,
    Diagnostic,
    Setting,
    SideEffect,
    Treatment,
    TreatmentType,
)


def new_ailment() -> Ailment:
    return Ailment()


def new_treatment() -> Treatment:
    return Treatment()


def new_diagnostic() -> Diagnostic:
    return Diagnostic()


def new_side_effect() -> SideEffect:
    return SideEffect()


def find_ailment(ailments: list[Ailment], ailment_id: str) -> Ailment | None:
    return next((a for a in ailments if a.id == ailment_id), None)


def get_top_treatment(ailment: Ailment) -> Treatment | None:
    """Treatment with the highest efficacy; the first one wins ties."""
    top: Treatment | None = None
    for treatment in ailment.treatments:
        if top is None or treatment.efficacy > top.efficacy:
            top = treatment
    return top


def validate_ailment(ailment: Ailment) -> list[str]:
    """Return human-readable problems with an ailment.

    This is advisory: nothing blocks a save when problems are reported.
    Percentages are clamped by the models, so the range checks only fire
    for values built with ``model_construct``.
    """
    errors: list[str] = []
    details = ailment.ailment

    if not details.name.strip():
        errors.append("Ailment name is required")
    if not 0 <= details.intensity <= 100:
        errors.append("Ailment intensity must be between 0 and 100")
    if not 0 <= details.severity <= 100:
        errors.append("Ailment severity must be between 0 and 100")
    if details.duration < 0:
        errors.append("Ailment duration must be non-negative")

    for index, treatment in enumerate(ailment.treatments, 1):
        if not treatment.name.strip():
            errors.append(f"Treatment {index}: name is required")
        if not 0 <= treatment.efficacy <= 100:
            errors.append(f"Treatment {index}: efficacy must be between 0 and 100")

    for index, diagnostic in enumerate(ailment.diagnostics, 1):
        if not diagnostic.name.strip():
            errors.append(f"Diagnostic {index}: name is required")
        if not 0 <= diagnostic.efficacy <= 100:
            errors.append(f"Diagnostic {index}: efficacy must be between 0 and 100")

    return errors


def sample_ailments() -> list[Ailment]:
    """Two fully populated aggregates for demos and seeding."""
    return [
        Ailment(
            id="1",
            ailment=AilmentDetails(
                name="Migraine",
                description="Severe recurring headache",
                duration=14400,
                intensity=75,
                severity=60,
            ),
            treatments=[
                Treatment(
                    id="t1",
                    name="Ibuprofen",
                    description="NSAID pain reliever",
                    application=Application.ORAL,
                    efficacy=70,
                    duration=3600,
                    intensity=20,
                    type=TreatmentType.SYMPTOM_BASED,
                    side_effects=[
                        SideEffect(
                            id="se1",
                            name="Stomach Upset",
                            description="Mild nausea",
                            duration=1800,
                            intensity=30,
                            severity=20,
                        )
                    ],
                    setting=Setting.HOME,
                    is_palliative=True,
                ),
                Treatment(
                    id="t2",
                    name="Sumatriptan",
                    description="Triptan medication",
                    application=Application.ORAL,
                    efficacy=85,
                    duration=1800,
                    intensity=30,
                    type=TreatmentType.SYMPTOM_BASED,
                    side_effects=[
                        SideEffect(
                            id="se2",
                            name="Dizziness",
                            description="Brief lightheadedness",
                            duration=900,
                            intensity=25,
                            severity=15,
                        )
                    ],
                    setting=Setting.HOME,
                    is_palliative=True,
                    is_curative=True,
                ),
            ],
            diagnostics=[
                Diagnostic(
                    id="d1",
                    name="Neurological Exam",
                    description="Physical examination",
                    efficacy=60,
                    duration=1800,
                    intensity=10,
                    type=TreatmentType.HOLISTIC,
                    setting=Setting.CLINIC,
                )
            ],
        ),
        Ailment(
            id="2",
            ailment=AilmentDetails(
                name="Type 2 Diabetes",
                description="Chronic metabolic disorder",
                duration=31536000,
                intensity=40,
                severity=70,
            ),
            treatments=[
                Treatment(
                    id="t3",
                    name="Metformin",
                    description="Oral diabetes medication",
                    application=Application.ORAL,
                    efficacy=80,
                    duration=86400,
                    intensity=15,
                    type=TreatmentType.SYMPTOM_BASED,
                    side_effects=[
                        SideEffect(
                            id="se3",
                            name="GI Disturbance",
                            description="Digestive issues",
                            duration=7200,
                            intensity=35,
                            severity=25,
                        )
                    ],
                    setting=Setting.HOME,
                    is_preventative=True,
                    is_palliative=True,
                )
            ],
            diagnostics=[
                Diagnostic(
                    id="d2",
                    name="HbA1c Test",
                    description="Blood sugar level test",
                    efficacy=95,
                    duration=300,
                    intensity=5,
                    type=TreatmentType.SYMPTOM_BASED,
                    setting=Setting.CLINIC,
                )
            ],
        ),
    ]

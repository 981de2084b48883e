"""Built-in workflow template catalog."""

from oncosaferx.models.workflow import (
    ChecklistItem,
    DoseAdjustment,
    DoseRules,
    DoseThresholds,
    WorkflowStep,
    WorkflowTemplate,
)

CATEGORIES = (
    "patient-care",
    "medication-review",
    "treatment-planning",
    "quality-assurance",
    "research",
)


def _checklist(*items: tuple[str, str, bool]) -> list[ChecklistItem]:
    return [ChecklistItem(id=i, text=text, required=required) for i, text, required in items]


def _step(
    id: str,
    title: str,
    description: str,
    type: str,
    minutes: int,
    depends_on: list[str],
    roles: list[str],
    required_data: list[str],
    checklist: list[ChecklistItem] | None = None,
) -> WorkflowStep:
    return WorkflowStep(
        id=id,
        title=title,
        description=description,
        type=type,
        estimated_time=minutes,
        dependencies=depends_on,
        assigned_role=roles,
        required_data=required_data,
        checklist=checklist or [],
    )


NEW_PATIENT_WORKUP = WorkflowTemplate(
    id="template-001",
    name="New Patient Oncology Workup",
    description="Comprehensive workflow for new cancer patient evaluation and treatment planning",
    category="patient-care",
    estimated_duration=120,
    difficulty="complex",
    specialties=["Oncology", "Nursing"],
    tags=["assessment", "staging", "multidisciplinary"],
    usage_count=1247,
    rating=4.8,
    created_by="Dr. Sarah Chen",
    last_modified="2024-01-15T10:00:00Z",
    mobile_optimized=True,
    steps=[
        _step(
            "step-001", "Initial Assessment",
            "Complete initial patient history and physical examination",
            "task", 30, [], ["oncologist", "nurse"],
            ["medical-history", "physical-exam", "vital-signs"],
            _checklist(
                ("check-001", "Obtain complete medical history", True),
                ("check-002", "Perform physical examination", True),
                ("check-003", "Document performance status", True),
                ("check-004", "Review prior imaging", False),
            ),
        ),
        _step(
            "step-002", "Diagnostic Workup",
            "Order and review necessary diagnostic tests",
            "task", 45, ["step-001"], ["oncologist"],
            ["lab-orders", "imaging-orders"],
            _checklist(
                ("check-005", "Order staging imaging", True),
                ("check-006", "Order tumor markers", True),
                ("check-007", "Order genetic testing if indicated", False),
            ),
        ),
        _step(
            "step-003", "Multidisciplinary Review",
            "Present case at tumor board for treatment planning",
            "review", 30, ["step-002"], ["oncologist", "surgeon", "radiation-oncologist"],
            ["staging-results", "pathology", "imaging"],
            _checklist(
                ("check-008", "Prepare case presentation", True),
                ("check-009", "Present at tumor board", True),
                ("check-010", "Document recommendations", True),
            ),
        ),
        _step(
            "step-004", "Treatment Planning",
            "Develop comprehensive treatment plan based on recommendations",
            "task", 15, ["step-003"], ["oncologist"],
            ["tumor-board-notes", "patient-preferences"],
            _checklist(
                ("check-011", "Create treatment plan", True),
                ("check-012", "Discuss with patient", True),
                ("check-013", "Schedule follow-up", True),
            ),
        ),
    ],
)

CHEMO_SAFETY_CHECK = WorkflowTemplate(
    id="template-002",
    name="Chemotherapy Safety Check",
    description="Pre-chemotherapy safety verification and administration workflow",
    category="medication-review",
    estimated_duration=45,
    difficulty="moderate",
    specialties=["Nursing", "Pharmacy"],
    tags=["safety", "verification", "administration"],
    usage_count=3156,
    rating=4.9,
    created_by="Lisa Rodriguez, PharmD",
    last_modified="2024-01-18T14:30:00Z",
    mobile_optimized=True,
    steps=[
        _step(
            "step-005", "Patient Identification",
            "Verify patient identity using two identifiers",
            "task", 5, [], ["nurse"],
            ["patient-id", "patient-verification"],
            _checklist(
                ("check-014", "Verify patient name", True),
                ("check-015", "Verify date of birth", True),
                ("check-016", "Check patient wristband", True),
            ),
        ),
        _step(
            "step-006", "Pre-medication Assessment",
            "Assess patient readiness for chemotherapy",
            "task", 15, ["step-005"], ["nurse"],
            ["vital-signs", "lab-results", "symptoms"],
            _checklist(
                ("check-017", "Check vital signs", True),
                ("check-018", "Review recent lab results", True),
                ("check-019", "Assess symptoms/toxicities", True),
                ("check-020", "Verify allergies", True),
            ),
        ),
        _step(
            "step-007", "Medication Verification",
            "Double-check medication orders and preparation",
            "review", 20, ["step-006"], ["pharmacist", "nurse"],
            ["medication-orders", "preparation-checklist"],
            _checklist(
                ("check-021", "Verify medication name and dose", True),
                ("check-022", "Check expiration dates", True),
                ("check-023", "Confirm route of administration", True),
                ("check-024", "Two-person verification", True),
            ),
        ),
        _step(
            "step-008", "Administration",
            "Safe administration of chemotherapy",
            "task", 5, ["step-007"], ["nurse"],
            ["verified-medications", "administration-schedule"],
            _checklist(
                ("check-025", "Final patient verification", True),
                ("check-026", "Document administration", True),
                ("check-027", "Monitor for immediate reactions", True),
            ),
        ),
    ],
)

TREATMENT_RESPONSE_EVALUATION = WorkflowTemplate(
    id="template-003",
    name="Treatment Response Evaluation",
    description="Systematic evaluation of treatment response and next steps",
    category="quality-assurance",
    estimated_duration=60,
    difficulty="moderate",
    specialties=["Oncology", "Radiology"],
    tags=["response", "imaging", "assessment"],
    usage_count=892,
    rating=4.6,
    created_by="Dr. Michael Park",
    last_modified="2024-01-12T09:15:00Z",
    steps=[
        _step(
            "step-009", "Imaging Review",
            "Review follow-up imaging studies",
            "review", 30, [], ["radiologist", "oncologist"],
            ["current-imaging", "baseline-imaging"],
            _checklist(
                ("check-028", "Compare to baseline imaging", True),
                ("check-029", "Measure target lesions", True),
                ("check-030", "Assess new lesions", True),
                ("check-031", "Apply RECIST criteria", True),
            ),
        ),
        _step(
            "step-010", "Clinical Assessment",
            "Evaluate clinical response and patient status",
            "task", 20, ["step-009"], ["oncologist"],
            ["imaging-results", "lab-results", "patient-symptoms"],
            _checklist(
                ("check-032", "Review tumor markers", True),
                ("check-033", "Assess symptom improvement", True),
                ("check-034", "Evaluate performance status", True),
            ),
        ),
        _step(
            "step-011", "Treatment Planning",
            "Determine next treatment steps",
            "decision", 10, ["step-010"], ["oncologist"],
            ["response-assessment", "patient-preferences"],
            _checklist(
                ("check-035", "Determine response category", True),
                ("check-036", "Plan next steps", True),
                ("check-037", "Schedule follow-up", True),
            ),
        ),
    ],
)


def _regimen_steps(prefix: str, regimen: str) -> list[WorkflowStep]:
    return [
        _step(
            f"{prefix}-1", "Pre-cycle Labs",
            "Review CBC with differential, CMP and toxicity grades",
            "review", 10, [], ["oncologist", "pharmacist"],
            ["cbc", "cmp", "toxicity-grades"],
        ),
        _step(
            f"{prefix}-2", "Dose Verification",
            f"Verify {regimen} doses against thresholds and adjustments",
            "approval", 10, [f"{prefix}-1"], ["pharmacist"],
            ["bsa", "crcl", "dose-orders"],
        ),
        _step(
            f"{prefix}-3", "Administer Cycle",
            f"Administer {regimen} per protocol",
            "task", 120, [f"{prefix}-2"], ["nurse"],
            ["verified-medications"],
        ),
    ]


FOLFOX_REGIMEN = WorkflowTemplate(
    id="regimen-folfox",
    name="FOLFOX Cycle Check",
    description="Per-cycle safety check for FOLFOX (oxaliplatin, leucovorin, 5-FU)",
    category="treatment-planning",
    estimated_duration=140,
    difficulty="moderate",
    specialties=["Oncology", "Pharmacy"],
    tags=["regimen", "colorectal", "oxaliplatin", "dose-guidance"],
    created_by="System",
    steps=_regimen_steps("folfox", "FOLFOX"),
    dose_rules=DoseRules(
        thresholds=DoseThresholds(
            anc_min=1500,
            platelets_min=75000,
            total_bilirubin_max=1.5,
            neuropathy_grade_hold=3,
            diarrhea_grade_hold=3,
        ),
        adjustments=[
            DoseAdjustment(
                condition="Persistent grade 2 neuropathy",
                recommendation="Reduce oxaliplatin to 75 mg/m²",
            ),
            DoseAdjustment(
                condition="Grade 3-4 neuropathy",
                recommendation="Discontinue oxaliplatin; continue 5-FU/leucovorin",
            ),
        ],
    ),
)

FOLFIRI_REGIMEN = WorkflowTemplate(
    id="regimen-folfiri",
    name="FOLFIRI Cycle Check",
    description="Per-cycle safety check for FOLFIRI (irinotecan, leucovorin, 5-FU)",
    category="treatment-planning",
    estimated_duration=140,
    difficulty="moderate",
    specialties=["Oncology", "Pharmacy"],
    tags=["regimen", "colorectal", "irinotecan", "dose-guidance"],
    created_by="System",
    steps=_regimen_steps("folfiri", "FOLFIRI"),
    dose_rules=DoseRules(
        thresholds=DoseThresholds(
            anc_min=1500,
            platelets_min=100000,
            total_bilirubin_max=1.5,
            diarrhea_grade_hold=2,
        ),
        adjustments=[
            DoseAdjustment(
                condition="Grade 3-4 diarrhea in prior cycle",
                recommendation="Reduce irinotecan by 20-25% after recovery",
            ),
        ],
    ),
)

CARBO_PACLITAXEL_REGIMEN = WorkflowTemplate(
    id="regimen-carbo-paclitaxel",
    name="Carboplatin/Paclitaxel Cycle Check",
    description="Per-cycle safety check for carboplatin AUC-dosed with paclitaxel",
    category="treatment-planning",
    estimated_duration=200,
    difficulty="moderate",
    specialties=["Oncology", "Pharmacy"],
    tags=["regimen", "ovarian", "lung", "carboplatin", "dose-guidance"],
    created_by="System",
    steps=_regimen_steps("carbo-pac", "carboplatin/paclitaxel"),
    dose_rules=DoseRules(
        thresholds=DoseThresholds(
            anc_min=1500,
            platelets_min=100000,
            crcl_min=30,
            neuropathy_grade_hold=2,
        ),
        adjustments=[
            DoseAdjustment(
                condition="CrCl change since last cycle",
                recommendation="Recalculate carboplatin dose with the Calvert formula",
            ),
        ],
    ),
)


def builtin_templates() -> list[WorkflowTemplate]:
    """Fresh copies of every bundled template, care pathways first."""
    return [
        t.model_copy(deep=True)
        for t in (
            NEW_PATIENT_WORKUP,
            CHEMO_SAFETY_CHECK,
            TREATMENT_RESPONSE_EVALUATION,
            FOLFOX_REGIMEN,
            FOLFIRI_REGIMEN,
            CARBO_PACLITAXEL_REGIMEN,
        )
    ]


def emergency_template(now: str) -> WorkflowTemplate:
    """The ad hoc three-step emergency response protocol."""
    return WorkflowTemplate(
        id="template-emergency",
        name="Emergency Response Protocol",
        description="Rapid response sequence for clinical emergencies",
        category="patient-care",
        estimated_duration=15,
        difficulty="complex",
        specialties=["ER", "Nursing"],
        tags=["emergency", "rapid"],
        rating=5,
        created_by="System",
        last_modified=now,
        is_public=False,
        mobile_optimized=True,
        steps=[
            _step("e1", "Assess ABCs", "Airway, Breathing, Circulation", "task", 1, [],
                  ["nurse", "physician"], []),
            _step("e2", "Call Code", "Alert code team", "notification", 1, ["e1"],
                  ["nurse"], []),
            _step("e3", "Stabilize", "Immediate stabilization measures", "task", 10, ["e2"],
                  ["team"], []),
        ],
    )

"""
Static tables: built-in escalation matrices and seed catalogs.

These are raw data only. The escalation engine never reads them directly;
they are validated into an EscalationMatrix by app.core.escalation_config.
"""

SERVICE_NAME = "contravention-tracker-backend"

# Stages of correction: 5 / 10 / 16+ points
STAGES_MATRIX = {
    "name": "stages",
    "tiers": [
        {
            "code": "LEVEL_1",
            "name": "Stage 1",
            "min_points": 5,
            "max_points": 9,
            "due_days": 7,
            "actions": ["Notify reporting manager"],
        },
        {
            "code": "LEVEL_2",
            "name": "Stage 2",
            "min_points": 10,
            "max_points": 15,
            "due_days": 30,
            "actions": [
                "Notify Department Head and Hong",
                "Complete Mandatory Training",
            ],
        },
        {
            "code": "LEVEL_3",
            "name": "Stage 3",
            "min_points": 16,
            "max_points": None,
            "due_days": 1,
            "actions": [
                "Notify Department Head and Hong",
                "Complete Mandatory Training",
                "Procurement rights paused",
                "Session with Finance",
            ],
        },
    ],
}

# Five-level matrix: 1-2 / 3-4 / 5-7 / 8-11 / 12+ points
LEVELS_MATRIX = {
    "name": "levels",
    "tiers": [
        {
            "code": "LEVEL_1",
            "name": "Verbal Reminder",
            "min_points": 1,
            "max_points": 2,
            "due_days": 7,
            "actions": ["Supervisor notified", "Verbal counseling session"],
        },
        {
            "code": "LEVEL_2",
            "name": "Written Warning",
            "min_points": 3,
            "max_points": 4,
            "actions": [
                "Formal written warning issued",
                "Copy to HR file",
                "Supervisor and Department Head notified",
            ],
        },
        {
            "code": "LEVEL_3",
            "name": "Mandatory Training",
            "min_points": 5,
            "max_points": 7,
            "actions": [
                "Complete Procurement Compliance Course within 30 days",
                "90-day probation period",
                "Weekly check-ins with Finance",
            ],
        },
        {
            "code": "LEVEL_4",
            "name": "Performance Impact",
            "min_points": 8,
            "max_points": 11,
            "actions": [
                "Performance Improvement Plan (PIP)",
                "Approval limits reduced",
                "Monthly review meetings with HR and Finance",
            ],
        },
        {
            "code": "LEVEL_5",
            "name": "Severe Consequences",
            "min_points": 12,
            "max_points": None,
            "due_days": 1,
            "actions": [
                "Procurement privileges suspended",
                "Full audit of past 12 months",
                "Executive review",
                "HR disciplinary process initiated",
            ],
        },
    ],
}

BUILTIN_MATRICES = {
    "stages": STAGES_MATRIX,
    "levels": LEVELS_MATRIX,
}

# Contravention type catalog seeded into an empty registry
DEFAULT_CONTRAVENTION_TYPES = [
    {"category": "DC_PROCUREMENT", "name": "Missing AOR", "default_points": 3},
    {"category": "SVP", "name": "Different vendor on AOR versus purchase", "default_points": 3},
    {"category": "SVP", "name": "Late Personal Claims", "default_points": 1},
    {"category": "DC_PROCUREMENT", "name": "Ownership Lapse", "default_points": 2},
    {"category": "DC_PROCUREMENT", "name": "Process-driven exception", "default_points": 0},
    {"category": "DC_PROCUREMENT", "name": "Multiple Contraventions", "default_points": 5},
    {"category": "MANPOWER", "name": "Insufficient AOR value for manpower blanket", "default_points": 3},
    {"category": "DC_PROCUREMENT", "name": "No approval before purchase", "default_points": 5},
    {"category": "SIGNATORY", "name": "Signatory Contravention", "default_points": 5},
    {"category": "DC_PROCUREMENT", "name": "Vendor AOR differs from actual vendor", "default_points": 3},
    {"category": "MANPOWER", "name": "Manpower extension without PCPO approval", "default_points": 3},
    {"category": "DC_PROCUREMENT", "name": "Others", "default_points": 2},
]

DEFAULT_COURSE = {
    "name": "Procurement Compliance Training",
    "description": "Mandatory refresher on procurement policy and approval workflow",
}

"""Human-readable rendering of stored enum values and dates for reports."""
from datetime import date, datetime, time
from typing import Any, Dict, Optional

PLACEHOLDER = "-"

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

SEX = {"male": "Male", "female": "Female"}

AGE_GROUP = {
    "toddler": "Toddler (1-5 years)",
    "child": "Child (5-17 years)",
    "adult": "Adult (17-59 years)",
    "elderly": "Elderly (60+ years)",
    "pregnant_woman": "Pregnant woman",
}

RELIGION = {
    "islam": "Islam",
    "protestant": "Protestant",
    "catholic": "Catholic",
    "hindu": "Hindu",
    "buddhist": "Buddhist",
    "confucian": "Confucian",
    "other": "Other",
}

ANAMNESIS_TYPE = {
    "auto_anamnesis": "Auto-anamnesis",
    "allo_anamnesis": "Allo-anamnesis",
}

GENERAL_CONDITION = {"good": "Good", "moderate": "Moderate", "poor": "Poor"}

SUPPLEMENTARY_EXAM = {
    "lab": "Laboratory",
    "xray": "X-ray",
    "ct_scan": "CT scan",
    "other": "Other",
    "none": "None",
}

FOLLOW_UP = {
    "discharged": "Discharged",
    "referred": "Referred",
    "not_referred": "Not referred",
}

EDUCATION_RECIPIENT = {"patient": "Patient", "family": "Family"}

WATER_ACCESS = {"available": "Available", "unavailable": "Unavailable"}

SANITATION = {"good": "Good", "poor": "Poor"}

PRIORITY = {"low": "Low", "moderate": "Moderate", "high": "High", "critical": "Critical"}


def label(mapping: Dict[str, str], value: Optional[str]) -> str:
    if value is None or value == "":
        return PLACEHOLDER
    return mapping.get(value, value)


def format_date(value: Optional[date]) -> str:
    """``15 January 2024``"""
    if value is None:
        return PLACEHOLDER
    return f"{value.day} {MONTHS[value.month - 1]} {value.year}"


def format_datetime(value: Optional[datetime]) -> str:
    """``15 January 2024 08:30``"""
    if value is None:
        return PLACEHOLDER
    return f"{format_date(value)} {value:%H:%M}"


def render(value: Any) -> Any:
    """Cell value: placeholder for missing, joined lists, formatted dates."""
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) if value else PLACEHOLDER
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, time):
        return f"{value:%H:%M}"
    return value

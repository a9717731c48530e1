"""Schema validation for rule drafts and uploaded roster/layout files."""

from dataclasses import dataclass, field
from typing import List
import pandas as pd

from models.errors import FieldError
from models.rule import RuleType, GROUP_RULE_TYPES
from config.defaults import (
    ROSTER_NAME_COLUMNS, ROSTER_FULL_NAME_COLUMN, ROSTER_STUDENT_ID_COLUMN,
    MAX_NAME_LENGTH, LAYOUT_SEAT_CODE, LAYOUT_DESK_CODE, LAYOUT_DOOR_CODE,
)


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class RuleValidation:
    valid: bool = True
    errors: List[FieldError] = field(default_factory=list)

    def add(self, field_name: str, message: str):
        self.valid = False
        self.errors.append(FieldError(field_name, message))


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_rule_draft(draft: dict) -> RuleValidation:
    """Check a rule draft; every problem is collected, none short-circuits."""
    result = RuleValidation()

    if not draft.get("roster_id"):
        result.add("roster_id", "Roster ID is required")

    rule_type = None
    if not draft.get("type"):
        result.add("type", "Rule type is required")
    else:
        rule_type = RuleType.parse(draft["type"])
        if rule_type is None:
            result.add("type", f"Invalid rule type: {draft['type']}")

    if draft.get("priority") is None:
        result.add("priority", "Priority is required")
    elif not _is_positive_int(draft["priority"]):
        result.add("priority", "Priority must be a positive integer")

    student_ids = draft.get("student_ids")
    if not student_ids:
        result.add("student_ids", "At least one student must be selected")
    elif isinstance(student_ids, str) or not isinstance(student_ids, (list, tuple)):
        result.add("student_ids", "Student IDs must be a list")
    else:
        if rule_type in GROUP_RULE_TYPES and len(student_ids) < rule_type.min_students:
            label = "Separate" if rule_type is RuleType.SEPARATE else "Together"
            result.add("student_ids", f"{label} rules require at least 2 students")
        if len(set(student_ids)) != len(student_ids):
            result.add("student_ids", "Duplicate student IDs are not allowed")
        if any(not sid for sid in student_ids):
            result.add("student_ids", "Student IDs cannot be empty")

    return result


ROSTER_OPTIONAL_COLUMNS = [ROSTER_STUDENT_ID_COLUMN]


def _check_rows(df: pd.DataFrame, file_label: str) -> ValidationResult:
    result = ValidationResult()
    if df.empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def validate_students_df(df: pd.DataFrame) -> ValidationResult:
    result = _check_rows(df, "Roster")
    has_split = all(col in df.columns for col in ROSTER_NAME_COLUMNS)
    has_full = ROSTER_FULL_NAME_COLUMN in df.columns
    if not has_split and not has_full:
        result.is_valid = False
        result.errors.append(
            f"Roster: Missing name columns: expected {', '.join(ROSTER_NAME_COLUMNS)} "
            f"or {ROSTER_FULL_NAME_COLUMN}"
        )
    if not result.is_valid:
        return result

    name_cols = ROSTER_NAME_COLUMNS if has_split else [ROSTER_FULL_NAME_COLUMN]
    for index, row in df.iterrows():
        line = index + 2  # header is line 1
        for col in name_cols:
            value = row.get(col)
            if pd.isna(value) or not str(value).strip():
                result.is_valid = False
                result.errors.append(f"Roster row {line}: {col} is required")
            elif len(str(value).strip()) > MAX_NAME_LENGTH and col != ROSTER_FULL_NAME_COLUMN:
                result.is_valid = False
                result.errors.append(
                    f"Roster row {line}: {col} must be {MAX_NAME_LENGTH} characters or fewer"
                )

    if ROSTER_STUDENT_ID_COLUMN in df.columns:
        ids = df[ROSTER_STUDENT_ID_COLUMN].dropna().astype(str).str.strip()
        ids = ids[ids != ""]
        dupes = ids[ids.duplicated(keep=False)].unique().tolist()
        if dupes:
            result.warnings.append(f"Roster: Duplicate student IDs: {', '.join(dupes)}")

    return result


LAYOUT_CODES = {LAYOUT_SEAT_CODE, LAYOUT_DESK_CODE, LAYOUT_DOOR_CODE}


def validate_layout_df(df: pd.DataFrame) -> ValidationResult:
    """Layout sheets are a grid of S (seat), D (teacher desk), X (door) or blank cells."""
    result = _check_rows(df, "Layout")
    if not result.is_valid:
        return result

    codes = df.fillna("").astype(str).apply(lambda col: col.str.strip().str.upper())
    unknown = sorted({c for c in codes.values.ravel() if c and c not in LAYOUT_CODES})
    if unknown:
        result.is_valid = False
        result.errors.append(
            f"Layout: Unknown cell codes: {', '.join(unknown)}. "
            f"Use {LAYOUT_SEAT_CODE}, {LAYOUT_DESK_CODE}, {LAYOUT_DOOR_CODE} or blank."
        )

    flat = codes.values.ravel().tolist()
    if LAYOUT_SEAT_CODE not in flat:
        result.is_valid = False
        result.errors.append("Layout: No seats found in layout.")
    if LAYOUT_DESK_CODE not in flat:
        result.warnings.append("Layout: No teacher desk marked; 'Near Teacher' uses the front row.")
    if flat.count(LAYOUT_DOOR_CODE) > 1:
        result.warnings.append("Layout: More than one door marked; the first one is used.")
    elif LAYOUT_DOOR_CODE not in flat:
        result.warnings.append("Layout: No door marked; 'Near Door' uses the edge seats.")

    return result

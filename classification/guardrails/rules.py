"""Guardrails validation rules for classifier verdicts"""
from typing import List, Dict, Any

DECISIONS = ("ALLOW", "REVIEW", "BLOCK")
CATEGORIES = ("educational", "entertainment", "gaming", "vlog", "music", "other")

CONFIDENCE_RANGE = (0, 100)
EDUCATIONAL_VALUE_RANGE = (0, 10)

MAX_CONCERNS = 20
MAX_CONCERN_LENGTH = 200

def validate_decision(decision: Any) -> List[str]:
    """Decision must be one of the three enum values, exactly"""
    if decision is None:
        return ["Missing decision"]
    if decision not in DECISIONS:
        return [f"Decision {decision!r} not in {list(DECISIONS)}"]
    return []

def validate_score(name: str, value: Any, bounds: tuple) -> List[str]:
    """Numeric score inside an inclusive range"""
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return [f"{name} must be a number, got {type(value).__name__}"]
    if not low <= value <= high:
        return [f"{name} {value} not in range {low}-{high}"]
    return []

def validate_concerns(concerns: Any) -> List[str]:
    violations = []

    if not isinstance(concerns, list):
        return [f"Concerns must be a list, got {type(concerns).__name__}"]

    if len(concerns) > MAX_CONCERNS:
        violations.append(f"Too many concerns ({len(concerns)}, max {MAX_CONCERNS})")

    for i, concern in enumerate(concerns):
        if not isinstance(concern, str):
            violations.append(f"Concern {i+1} must be string")
            continue
        if not concern.strip():
            violations.append(f"Concern {i+1} is blank")
        elif len(concern) > MAX_CONCERN_LENGTH:
            violations.append(f"Concern {i+1} too long ({len(concern)} chars)")

    return violations

def validate_verdict(verdict: Dict[str, Any]) -> List[str]:
    """Validate a raw classifier payload (camelCase keys, as the model returns them)"""
    violations = []

    violations.extend(validate_decision(verdict.get("decision")))
    violations.extend(validate_score("confidence", verdict.get("confidence"), CONFIDENCE_RANGE))
    violations.extend(validate_score("educationalValue", verdict.get("educationalValue"),
                                     EDUCATIONAL_VALUE_RANGE))
    if "concerns" not in verdict:
        violations.append("Missing concerns")
    else:
        violations.extend(validate_concerns(verdict["concerns"]))

    category = verdict.get("category")
    if not isinstance(category, str) or not category.strip():
        violations.append("Missing category")

    reasoning = verdict.get("reasoning")
    if reasoning is None:
        violations.append("Missing reasoning")
    elif not isinstance(reasoning, str):
        violations.append("Reasoning must be string")

    return violations

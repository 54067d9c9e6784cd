"""
Field Validation

Applies a step's declarative ValidationRules to submitted values. The first
failing rule per field wins, matching how a form shows a single inline
error under each input.
"""

import re
from typing import Any, Dict, Iterable, Mapping

from ..domain.models import ValidationRule

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _as_number(value: Any):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _file_names(value: Any):
    files = value if isinstance(value, (list, tuple)) else [value]
    for item in files:
        if isinstance(item, Mapping):
            yield str(item.get("name", ""))
        else:
            yield str(item)


def check_rule(rule: ValidationRule, value: Any) -> bool:
    """True when 'value' satisfies the rule. Optional rules pass on blanks."""
    if rule.rule == "required":
        return not _is_blank(value)

    if _is_blank(value):
        return True

    if rule.rule == "email":
        return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))

    if rule.rule == "regex":
        return bool(re.search(rule.pattern or "", str(value)))

    if rule.rule in ("min", "max"):
        number = _as_number(value)
        if number is None:
            return False
        if rule.rule == "min":
            return number >= rule.limit
        return number <= rule.limit

    if rule.rule == "accept":
        allowed = [ext.strip().lower() for ext in (rule.pattern or "").split(",") if ext.strip()]
        return all(
            any(name.lower().endswith(ext) for ext in allowed)
            for name in _file_names(value)
        )

    return True


def validate(rules: Iterable[ValidationRule], values: Mapping[str, Any]) -> Dict[str, str]:
    """Returns {field_id: message} for every field failing at least one rule."""
    errors: Dict[str, str] = {}
    for rule in rules:
        if rule.field_id in errors:
            continue
        if not check_rule(rule, values.get(rule.field_id)):
            errors[rule.field_id] = rule.message
    return errors

"""
Declarative rule-based validation for form submissions.

A schema maps field paths to rules. Paths are either plain keys
(``"notes"``) or one level of nesting (``"address.street"``). Validation
failures are returned as data: a message per failing field path.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Pattern, Union

from utils.constants import INVALID_FORMAT_MESSAGE, REQUIRED_MESSAGE

CustomValidator = Callable[[Any, Mapping[str, Any]], Optional[str]]


@dataclass(frozen=True)
class ValidationRule:
    """Constraints for a single field."""

    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Union[str, Pattern[str]]] = None
    custom: Optional[CustomValidator] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern))


ValidationSchema = Dict[str, ValidationRule]


@dataclass
class ValidationResult:
    """Outcome of validating an object against a schema."""

    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def is_blank(value: Any) -> bool:
    """True for a missing value or an empty/whitespace-only string."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def resolve_path(data: Any, path: str) -> Any:
    """
    Resolve a field path against ``data``.

    Only one level of nesting is supported: ``"parent.child"`` looks up
    ``data[parent][child]``. Any further segments are ignored. A missing
    or non-mapping parent resolves to ``None``.
    """
    if not isinstance(data, Mapping):
        return None

    if "." not in path:
        return data.get(path)

    parent_key, child_key = path.split(".")[:2]
    parent = data.get(parent_key)
    if not isinstance(parent, Mapping):
        return None
    return parent.get(child_key)


def validate_field(
    value: Any, rule: ValidationRule, data: Optional[Mapping[str, Any]] = None
) -> Optional[str]:
    """
    Validate a single value against a rule.

    Checks run in order and stop at the first failure: required, blank
    skip, length bounds, pattern, custom. Length and pattern only apply
    to strings.

    Args:
        value: Field value (``None`` when missing)
        rule: Rule to apply
        data: Whole object being validated, passed to ``rule.custom``

    Returns:
        Error message, or None if the value passes
    """
    if is_blank(value):
        if rule.required:
            return rule.message or REQUIRED_MESSAGE
        # Optional and absent: nothing else to check
        return None

    if isinstance(value, str):
        if rule.min_length is not None and len(value) < rule.min_length:
            return rule.message or f"Must be at least {rule.min_length} characters"
        if rule.max_length is not None and len(value) > rule.max_length:
            return rule.message or f"Must be no more than {rule.max_length} characters"

        if rule.pattern is not None and not rule.pattern.search(value):
            return rule.message or INVALID_FORMAT_MESSAGE

    if rule.custom is not None:
        return rule.custom(value, data if data is not None else {})

    return None


def validate_object(data: Mapping[str, Any], schema: ValidationSchema) -> ValidationResult:
    """
    Validate ``data`` against every rule in ``schema``.

    Errors are keyed by the schema's field path, nested paths included.
    Exceptions raised by custom rules are not caught.
    """
    errors: Dict[str, str] = {}

    for path, rule in schema.items():
        error = validate_field(resolve_path(data, path), rule, data)
        if error:
            errors[path] = error

    return ValidationResult(errors=errors)


def get_field_error(field_path: str, errors: Mapping[str, str]) -> Optional[str]:
    """Get the error message for a field, if any."""
    return errors.get(field_path) or None


def has_field_error(field_path: str, errors: Mapping[str, str]) -> bool:
    """Check if a field has a validation error."""
    return bool(errors.get(field_path))


def clear_field_error(field_path: str, errors: Mapping[str, str]) -> Dict[str, str]:
    """Return a copy of ``errors`` without ``field_path``."""
    return {path: message for path, message in errors.items() if path != field_path}


def get_validation_errors_string(errors: Mapping[str, str]) -> str:
    """Join all error messages into one line."""
    return ", ".join(errors.values())

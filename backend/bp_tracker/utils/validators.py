"""
Input validation for blood pressure readings.

Two layers are checked: hard bounds reject the write, plausibility ranges
only produce advisory warnings.
"""
from dataclasses import dataclass, field

from bp_tracker.errors import ValidationError, BusinessRuleViolation
from bp_tracker.utils.dates import parse_iso_datetime

# Hard bounds enforced before persistence
SYSTOLIC_RANGE = (50, 300)
DIASTOLIC_RANGE = (30, 200)
PULSE_RANGE = (30, 220)
NOTES_MAX_LENGTH = 500

# Advisory ranges
SYSTOLIC_PLAUSIBLE = (70, 250)
DIASTOLIC_PLAUSIBLE = (40, 150)

SYSTOLIC_RULE_MESSAGE = 'Systolic must be higher than diastolic'


@dataclass
class ValidationResult:
    errors: dict = field(default_factory=dict)
    rule_violation: str = None
    warnings: list = field(default_factory=list)
    values: dict = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors and self.rule_violation is None

    def raise_for_failure(self):
        """Raise the error kind matching the first failed layer."""
        if self.errors:
            raise ValidationError(self.errors)
        if self.rule_violation:
            raise BusinessRuleViolation(self.rule_violation)

    def to_dict(self) -> dict:
        return {
            'valid': self.is_valid,
            'errors': self.errors,
            'ruleViolation': self.rule_violation,
            'warnings': self.warnings,
        }


def validate_bp(systolic: int, diastolic: int, pulse: int = None,
                notes: str = None) -> ValidationResult:
    """Check already-typed reading values. Reports every failed check."""
    result = ValidationResult()

    if not SYSTOLIC_RANGE[0] <= systolic <= SYSTOLIC_RANGE[1]:
        result.errors['systolic'] = 'Systolic value must be between 50-300 mmHg'
    elif not SYSTOLIC_PLAUSIBLE[0] <= systolic <= SYSTOLIC_PLAUSIBLE[1]:
        result.warnings.append('Systolic reading seems unusual (70-250 range expected)')

    if not DIASTOLIC_RANGE[0] <= diastolic <= DIASTOLIC_RANGE[1]:
        result.errors['diastolic'] = 'Diastolic value must be between 30-200 mmHg'
    elif not DIASTOLIC_PLAUSIBLE[0] <= diastolic <= DIASTOLIC_PLAUSIBLE[1]:
        result.warnings.append('Diastolic reading seems unusual (40-150 range expected)')

    if pulse is not None and not PULSE_RANGE[0] <= pulse <= PULSE_RANGE[1]:
        result.errors['pulse'] = 'Pulse must be between 30 and 220 bpm'

    if notes is not None and len(notes) > NOTES_MAX_LENGTH:
        result.errors['notes'] = 'Notes must be 500 characters or fewer'

    if systolic <= diastolic:
        result.rule_violation = SYSTOLIC_RULE_MESSAGE

    return result


def _parse_int(value):
    if isinstance(value, bool):
        raise TypeError('bool is not an integer')
    if isinstance(value, float) and not value.is_integer():
        raise ValueError('not a whole number')
    return int(value)


def validate_reading(data: dict) -> ValidationResult:
    """Validate a create-reading payload.

    Type errors are collected per field. When systolic and diastolic both
    parse, the value checks of validate_bp are merged in. Parsed values are
    returned in result.values, ready for the store.
    """
    errors = {}
    values = {}

    for name, label in (('systolic', 'Systolic'), ('diastolic', 'Diastolic')):
        raw = data.get(name)
        if raw is None:
            errors[name] = f'{label} is required'
            continue
        try:
            values[name] = _parse_int(raw)
        except (ValueError, TypeError):
            errors[name] = f'{label} must be an integer'

    pulse = data.get('pulse')
    if pulse is not None:
        try:
            values['pulse'] = _parse_int(pulse)
        except (ValueError, TypeError):
            errors['pulse'] = 'Pulse must be an integer'

    notes = data.get('notes')
    if notes is not None:
        if isinstance(notes, str):
            values['notes'] = notes
        else:
            errors['notes'] = 'Notes must be a string'

    tags = data.get('tags')
    if tags is not None:
        if isinstance(tags, list) and all(isinstance(t, str) for t in tags):
            values['tags'] = list(tags)
        else:
            errors['tags'] = 'Tags must be a list of strings'

    recorded_at = data.get('recordedAt')
    if recorded_at is not None:
        try:
            values['recorded_at'] = parse_iso_datetime(recorded_at)
        except (ValueError, TypeError):
            errors['recordedAt'] = 'Invalid recordedAt format'

    result = ValidationResult(values=values)
    if 'systolic' in values and 'diastolic' in values:
        checked = validate_bp(values['systolic'], values['diastolic'],
                              values.get('pulse'), values.get('notes'))
        errors.update({k: v for k, v in checked.errors.items() if k not in errors})
        result.rule_violation = checked.rule_violation
        result.warnings = checked.warnings
    else:
        if 'pulse' in values:
            pulse_value = values['pulse']
            if not PULSE_RANGE[0] <= pulse_value <= PULSE_RANGE[1]:
                errors['pulse'] = 'Pulse must be between 30 and 220 bpm'
        if 'notes' in values and len(values['notes']) > NOTES_MAX_LENGTH:
            errors['notes'] = 'Notes must be 500 characters or fewer'

    result.errors = errors
    return result

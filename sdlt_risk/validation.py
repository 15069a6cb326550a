"""Write-time validation rules for weight-matrix rows, selections and questionnaires.

Each validator returns a :class:`ValidationResult` holding human-readable
messages. Validators never raise for bad data; callers decide whether a
non-empty result blocks the write (see :meth:`ValidationResult.raise_if_invalid`).
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from sdlt_risk.exceptions import ValidationError
from sdlt_risk.models.config import ScoringConfig
from sdlt_risk.models.questionnaire import (
    QUESTIONNAIRE_TYPES,
    RISK_CALCULATIONS,
    TYPE_RISK_QUESTIONNAIRE,
    AnswerInputField,
    MultiChoiceAnswerSelection,
    Questionnaire,
    Task,
)
from sdlt_risk.models.security import ControlWeightSet

_RANGES = (
    ("likelihood", "Likelihood", 10),
    ("impact", "Impact", 10),
    ("likelihood_penalty", "Likelihood Penalty", 100),
    ("impact_penalty", "Impact Penalty", 100),
)


class ValidationResult:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def add_error(self, message: str) -> None:
        self.messages.append(message)

    def is_valid(self) -> bool:
        return not self.messages

    def raise_if_invalid(self) -> None:
        if self.messages:
            raise ValidationError(self.messages)


def validate_weight_set(
    row: ControlWeightSet,
    existing: Iterable[ControlWeightSet],
) -> ValidationResult:
    """Check ranges, the mandatory risk, and triple uniqueness against *existing*.

    The row's component must already be resolved.
    """
    result = ValidationResult()

    for attr, label, upper in _RANGES:
        value = getattr(row, attr)
        if value is not None and (value < 0 or value > upper):
            result.add_error(f"{label} should be a value between 0 and {upper}.")

    if not row.risk_id:
        result.add_error("Please select a Risk for this Control.")

    for other in existing:
        if other.id != row.id and other.key == row.key:
            result.add_error("Please select a unique Risk for this Control.")
            break

    return result


def validate_selection(
    selection: MultiChoiceAnswerSelection,
    input_field: AnswerInputField,
) -> ValidationResult:
    result = ValidationResult()
    if not input_field.multiple_choice:
        return result

    values = [s.value for s in input_field.selections if s.id != selection.id]
    if selection.value in values:
        result.add_error(f'"{selection.value}" already exists, please add a unique value.')
    return result


def validate_questionnaire(
    questionnaire: Questionnaire,
    config: ScoringConfig,
    original: Optional[Questionnaire] = None,
) -> ValidationResult:
    """Validate *questionnaire*; *original* is the stored version, None for new records."""
    result = ValidationResult()

    if not questionnaire.name:
        result.add_error("Please add a questionnnaire name.")
    elif not questionnaire.type:
        result.add_error("Please select a questionnnaire type.")
    elif (
        questionnaire.type == TYPE_RISK_QUESTIONNAIRE
        and not questionnaire.risk_calculation
    ):
        result.add_error("Please select a risk-calculation type.")

    _check_enums(questionnaire.type, questionnaire.risk_calculation, result)

    if original is None:
        changed = bool(questionnaire.expire_after_days)
    else:
        changed = original.expire_after_days != questionnaire.expire_after_days

    if (
        changed
        and questionnaire.submissions_expire()
        and questionnaire.expire_after_days < config.min_expiry_days
    ):
        result.add_error(
            f"Expiry time should be greater than {config.min_expiry_days} days."
        )

    return result


def validate_task(task: Task) -> ValidationResult:
    result = ValidationResult()
    if not task.name:
        result.add_error("Please add a task name.")
    if task.type == TYPE_RISK_QUESTIONNAIRE and not task.risk_calculation:
        result.add_error("Please select a risk-calculation type.")
    _check_enums(task.type, task.risk_calculation, result)
    return result


def _check_enums(
    type_value: Optional[str],
    risk_calculation: Optional[str],
    result: ValidationResult,
) -> None:
    if type_value and type_value not in QUESTIONNAIRE_TYPES:
        result.add_error(f'"{type_value}" is not a valid questionnaire type.')
    if risk_calculation and risk_calculation not in RISK_CALCULATIONS:
        result.add_error(f'"{risk_calculation}" is not a valid risk-calculation type.')

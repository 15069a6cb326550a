from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from sdlt_risk.models.config import ScoringConfig

TYPE_QUESTIONNAIRE = "Questionnaire"
TYPE_RISK_QUESTIONNAIRE = "RiskQuestionnaire"
QUESTIONNAIRE_TYPES = (TYPE_QUESTIONNAIRE, TYPE_RISK_QUESTIONNAIRE)

CALC_NZTA_APPROX = "NztaApproxRepresentation"
CALC_MAXIMUM = "Maximum"
RISK_CALCULATIONS = (CALC_NZTA_APPROX, CALC_MAXIMUM)

EXPIRE_YES = "Yes"
EXPIRE_NO = "No"


@dataclass
class SelectionRiskWeight:
    """Join entity: choosing *selection_id* contributes *weight* under *risk_id*."""

    selection_id: int
    risk_id: int
    weight: object = 0


@dataclass
class MultiChoiceAnswerSelection:
    id: int
    label: str
    value: str
    field_id: int
    risk_weights: List[SelectionRiskWeight] = field(default_factory=list)


@dataclass
class AnswerInputField:
    id: int
    label: str
    multiple_choice: bool = False
    selections: List[MultiChoiceAnswerSelection] = field(default_factory=list)


@dataclass
class Question:
    id: int
    title: str
    questionnaire_id: Optional[int] = None
    task_id: Optional[int] = None
    input_fields: List[AnswerInputField] = field(default_factory=list)


class _RiskTyped:
    type: Optional[str]
    risk_calculation: Optional[str]

    def get_type(self) -> str:
        # Legacy records carry no type at all.
        return self.type or TYPE_QUESTIONNAIRE

    def is_risk_type(self) -> bool:
        return self.type == TYPE_RISK_QUESTIONNAIRE and bool(self.risk_calculation)


@dataclass
class Pillar:
    id: int
    name: str


@dataclass
class Task(_RiskTyped):
    id: int
    name: str
    type: Optional[str] = None
    risk_calculation: Optional[str] = None
    questions: List[Question] = field(default_factory=list)


@dataclass
class Questionnaire(_RiskTyped):
    id: int
    name: str
    type: Optional[str] = None
    risk_calculation: Optional[str] = None
    approval_is_not_required: bool = False
    does_submission_expire: Optional[str] = EXPIRE_YES
    expire_after_days: int = 0
    key_information: str = ""
    pillar_id: Optional[int] = None
    task_ids: List[int] = field(default_factory=list)
    questions: List[Question] = field(default_factory=list)

    def apply_defaults(self, config: ScoringConfig) -> None:
        """Pre-write defaults: an unset expiry flag means expiring submissions."""
        if self.does_submission_expire is None:
            self.does_submission_expire = EXPIRE_YES
            self.expire_after_days = config.expiry_days

    def get_expire_after_days(self, config: ScoringConfig) -> int:
        """Return the expiry window, repairing zero or too-small stored values."""
        if not self.expire_after_days or self.expire_after_days < config.min_expiry_days:
            self.expire_after_days = config.expiry_days
        return self.expire_after_days

    def submissions_expire(self) -> bool:
        return self.does_submission_expire == EXPIRE_YES

    def bypasses_approval(self, outstanding_tasks: int) -> bool:
        return bool(self.approval_is_not_required) and outstanding_tasks == 0

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from sdlt_risk.exceptions import DatasetError
from sdlt_risk.models.config import ScoringConfig
from sdlt_risk.models.questionnaire import (
    EXPIRE_NO,
    EXPIRE_YES,
    AnswerInputField,
    MultiChoiceAnswerSelection,
    Pillar,
    Question,
    Questionnaire,
    SelectionRiskWeight,
    Task,
)
from sdlt_risk.models.security import (
    ControlWeightSet,
    Risk,
    SecurityComponent,
    SecurityControl,
)
from sdlt_risk.models.submission import SelectedAnswer, Submission
from sdlt_risk.validation import (
    validate_questionnaire,
    validate_selection,
    validate_task,
    validate_weight_set,
)
from sdlt_risk.weight_matrix import WeightMatrix

logger = logging.getLogger(__name__)

DATASET_FILENAME = "dataset.yaml"

Owner = Union[Questionnaire, Task]


@dataclass
class Dataset:
    risks: Dict[int, Risk] = field(default_factory=dict)
    components: Dict[int, SecurityComponent] = field(default_factory=dict)
    controls: Dict[int, SecurityControl] = field(default_factory=dict)
    weight_matrix: WeightMatrix = field(default_factory=WeightMatrix)
    pillars: Dict[int, Pillar] = field(default_factory=dict)
    tasks: Dict[int, Task] = field(default_factory=dict)
    questionnaires: Dict[int, Questionnaire] = field(default_factory=dict)
    submissions: List[Submission] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._selections: Dict[int, MultiChoiceAnswerSelection] = {}
        self._fields: Dict[int, AnswerInputField] = {}
        self._owners: Dict[int, Owner] = {}
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the selection, field and owner lookups from the questions."""
        self._selections.clear()
        self._fields.clear()
        self._owners.clear()
        owners: List[Owner] = [*self.questionnaires.values(), *self.tasks.values()]
        for owner in owners:
            for question in owner.questions:
                for input_field in question.input_fields:
                    self._fields[input_field.id] = input_field
                    for selection in input_field.selections:
                        self._selections[selection.id] = selection
                        self._owners[selection.id] = owner

    def parent_component_id(self, control_id: int) -> Optional[int]:
        control = self.controls.get(control_id)
        if control is not None and control.component_id is not None:
            return control.component_id
        for component in self.components.values():
            if control_id in component.control_ids:
                return component.id
        return None

    def selection(self, selection_id: int) -> Optional[MultiChoiceAnswerSelection]:
        return self._selections.get(selection_id)

    def input_field(self, field_id: int) -> Optional[AnswerInputField]:
        return self._fields.get(field_id)

    def owner_of(self, selection_id: int) -> Optional[Owner]:
        return self._owners.get(selection_id)

    def selection_is_risk_type(self, selection_id: int) -> bool:
        owner = self.owner_of(selection_id)
        return owner is not None and owner.is_risk_type()

    def controls_in_scope(self, component_ids: List[int]) -> List[Tuple[int, int]]:
        """Return (component, control) pairs for the given components, or for all."""
        ids = component_ids or sorted(self.components)
        pairs: List[Tuple[int, int]] = []
        for component_id in ids:
            component = self.components.get(component_id)
            if component is None:
                continue
            control_ids = list(component.control_ids)
            # Controls may name their parent without being listed by it.
            for control in self.controls.values():
                if control.component_id == component_id and control.id not in control_ids:
                    control_ids.append(control.id)
            pairs.extend((component_id, control_id) for control_id in control_ids)
        return pairs

    def submission_records(self, submission: Submission) -> List[str]:
        """Labels (as used by :meth:`validate`) of the records a submission's score depends on."""
        labels = [f"questionnaire {submission.questionnaire_id}"]
        questionnaire = self.questionnaires.get(submission.questionnaire_id)
        if questionnaire is not None:
            labels.extend(f"task {task_id}" for task_id in questionnaire.task_ids)
        labels.extend(f"selection {answer.selection_id}" for answer in submission.answers)
        in_scope = set(self.controls_in_scope(submission.component_ids))
        labels.extend(
            f"weight set {row.id}" for row in self.weight_matrix
            if (row.component_id, row.control_id) in in_scope
        )
        return labels

    def validate(self, config: ScoringConfig) -> Dict[str, List[str]]:
        """Run every write-time rule; returns messages keyed by record label.

        Questionnaire pre-write defaults are applied first.
        """
        errors: Dict[str, List[str]] = {}

        for row in self.weight_matrix:
            result = validate_weight_set(row, self.weight_matrix)
            if not result.is_valid():
                errors[f"weight set {row.id}"] = result.messages

        for selection in self._selections.values():
            input_field = self._fields.get(selection.field_id)
            if input_field is None:
                continue
            result = validate_selection(selection, input_field)
            if not result.is_valid():
                errors[f"selection {selection.id}"] = result.messages

        for questionnaire in self.questionnaires.values():
            questionnaire.apply_defaults(config)
            result = validate_questionnaire(questionnaire, config)
            if not result.is_valid():
                errors[f"questionnaire {questionnaire.id}"] = result.messages

        for task in self.tasks.values():
            result = validate_task(task)
            if not result.is_valid():
                errors[f"task {task.id}"] = result.messages

        return errors


def load_dataset(path: Path) -> Dataset:
    if not path.is_file():
        raise DatasetError(f"Dataset file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise DatasetError(f"Invalid dataset format in {path.name}.") from exc
    dataset = parse_dataset(raw)
    logger.info(
        "Loaded %s: %d questionnaires, %d weight sets, %d submissions",
        path.name, len(dataset.questionnaires), len(dataset.weight_matrix),
        len(dataset.submissions),
    )
    return dataset


def parse_dataset(raw: Any) -> Dataset:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise DatasetError("Invalid dataset: expected a mapping at the top level.")

    dataset = Dataset(
        risks={r.id: r for r in (_parse_risk(item) for item in _items(raw, "risks"))},
        components={
            c.id: c for c in (_parse_component(item) for item in _items(raw, "components"))
        },
        controls={
            c.id: c for c in (_parse_control(item) for item in _items(raw, "controls"))
        },
        pillars={p.id: p for p in (_parse_pillar(item) for item in _items(raw, "pillars"))},
        tasks={t.id: t for t in (_parse_task(item) for item in _items(raw, "tasks"))},
        questionnaires={
            q.id: q
            for q in (_parse_questionnaire(item) for item in _items(raw, "questionnaires"))
        },
    )
    dataset.weight_matrix = WeightMatrix(
        (_parse_weight_set(item) for item in _items(raw, "weight_sets")),
        parent_of=dataset.parent_component_id,
    )
    dataset.reindex()

    for item in _items(raw, "submissions"):
        submission = _parse_submission(item)
        if submission.questionnaire_id not in dataset.questionnaires:
            raise DatasetError(
                f"Submission {submission.id} refers to unknown questionnaire "
                f"{submission.questionnaire_id}."
            )
        for answer in submission.answers:
            if dataset.selection(answer.selection_id) is None:
                raise DatasetError(
                    f"Submission {submission.id} refers to unknown answer selection "
                    f"{answer.selection_id}."
                )
        dataset.submissions.append(submission)

    return dataset


def _items(raw: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise DatasetError(f"Invalid dataset: '{key}' must be a list.")
    for item in value:
        if not isinstance(item, dict):
            raise DatasetError(f"Invalid dataset: every entry in '{key}' must be a mapping.")
    return value


def _nested_items(value: Any, what: str) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DatasetError(f"Invalid {what}: expected a list.")
    for item in value:
        if not isinstance(item, dict):
            raise DatasetError(f"Invalid {what}: every entry must be a mapping.")
    return value


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise DatasetError(f"Invalid {what}: expected an integer, got {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise DatasetError(f"Invalid {what}: expected an integer, got {value!r}.")


def _opt_int(value: Any, what: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return _as_int(value, what)


def _id(item: Dict[str, Any], kind: str) -> int:
    if "id" not in item:
        raise DatasetError(f"Invalid dataset: {kind} entry without an id.")
    return _as_int(item["id"], f"{kind} id")


def _int_list(value: Any, what: str) -> List[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DatasetError(f"Invalid {what}: expected a list.")
    return [_as_int(v, what) for v in value]


def _parse_risk(item: Dict[str, Any]) -> Risk:
    risk_id = _id(item, "risk")
    return Risk(
        id=risk_id,
        name=str(item.get("name", "") or ""),
        likelihood=_as_int(item.get("likelihood", 0) or 0, f"likelihood of risk {risk_id}"),
        impact=_as_int(item.get("impact", 0) or 0, f"impact of risk {risk_id}"),
    )


def _parse_component(item: Dict[str, Any]) -> SecurityComponent:
    component_id = _id(item, "component")
    return SecurityComponent(
        id=component_id,
        name=str(item.get("name", "") or ""),
        description=str(item.get("description", "") or ""),
        control_ids=_int_list(item.get("controls"), f"controls of component {component_id}"),
    )


def _parse_control(item: Dict[str, Any]) -> SecurityControl:
    control_id = _id(item, "control")
    return SecurityControl(
        id=control_id,
        name=str(item.get("name", "") or ""),
        description=str(item.get("description", "") or ""),
        component_id=_opt_int(item.get("component"), f"component of control {control_id}"),
    )


def _parse_weight_set(item: Dict[str, Any]) -> ControlWeightSet:
    row_id = _id(item, "weight set")
    label = f"weight set {row_id}"
    if item.get("control") in (None, ""):
        raise DatasetError(f"Invalid dataset: {label} has no control.")
    return ControlWeightSet(
        id=row_id,
        risk_id=_opt_int(item.get("risk"), f"risk of {label}"),
        control_id=_as_int(item["control"], f"control of {label}"),
        component_id=_opt_int(item.get("component"), f"component of {label}"),
        likelihood=_as_int(item.get("likelihood", 0), f"likelihood of {label}"),
        impact=_as_int(item.get("impact", 0), f"impact of {label}"),
        likelihood_penalty=_as_int(
            item.get("likelihood_penalty", 0), f"likelihood penalty of {label}",
        ),
        impact_penalty=_as_int(item.get("impact_penalty", 0), f"impact penalty of {label}"),
    )


def _parse_risk_weights(raw: Any, selection_id: int) -> List[SelectionRiskWeight]:
    # Weights stay as given; they are checked when a submission is scored.
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise DatasetError(f"Invalid risks of selection {selection_id}: expected a list.")
    weights: List[SelectionRiskWeight] = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get("risk") in (None, ""):
            raise DatasetError(
                f"Invalid risks of selection {selection_id}: every entry needs a risk."
            )
        weights.append(SelectionRiskWeight(
            selection_id=selection_id,
            risk_id=_as_int(entry["risk"], f"risk of selection {selection_id}"),
            weight=entry.get("weight", 0),
        ))
    return weights


def _parse_field(item: Dict[str, Any]) -> AnswerInputField:
    field_id = _id(item, "input field")
    selections: List[MultiChoiceAnswerSelection] = []
    for raw in _nested_items(item.get("selections"), f"selections of input field {field_id}"):
        selection_id = _id(raw, "selection")
        selections.append(MultiChoiceAnswerSelection(
            id=selection_id,
            label=str(raw.get("label", "") or ""),
            value=str(raw.get("value", "") or ""),
            field_id=field_id,
            risk_weights=_parse_risk_weights(raw.get("risks"), selection_id),
        ))
    return AnswerInputField(
        id=field_id,
        label=str(item.get("label", "") or ""),
        multiple_choice=bool(item.get("multiple_choice", False)),
        selections=selections,
    )


def _parse_questions(
    raw: Any,
    *,
    questionnaire_id: Optional[int] = None,
    task_id: Optional[int] = None,
) -> List[Question]:
    owner = f"task {task_id}" if task_id is not None else f"questionnaire {questionnaire_id}"
    questions: List[Question] = []
    for item in _nested_items(raw, f"questions of {owner}"):
        question_id = _id(item, "question")
        fields = _nested_items(item.get("fields"), f"fields of question {question_id}")
        questions.append(Question(
            id=question_id,
            title=str(item.get("title", "") or ""),
            questionnaire_id=questionnaire_id,
            task_id=task_id,
            input_fields=[_parse_field(f) for f in fields],
        ))
    return questions


def _parse_pillar(item: Dict[str, Any]) -> Pillar:
    return Pillar(id=_id(item, "pillar"), name=str(item.get("name", "") or ""))


def _parse_task(item: Dict[str, Any]) -> Task:
    task_id = _id(item, "task")
    return Task(
        id=task_id,
        name=str(item.get("name", "") or ""),
        type=item.get("type") or None,
        risk_calculation=item.get("risk_calculation") or None,
        questions=_parse_questions(item.get("questions"), task_id=task_id),
    )


def _expire_flag(value: Any) -> Optional[str]:
    # Unquoted Yes/No in YAML arrive as booleans.
    if isinstance(value, bool):
        return EXPIRE_YES if value else EXPIRE_NO
    return None if value is None else str(value)


def _parse_questionnaire(item: Dict[str, Any]) -> Questionnaire:
    questionnaire_id = _id(item, "questionnaire")
    label = f"questionnaire {questionnaire_id}"
    return Questionnaire(
        id=questionnaire_id,
        name=str(item.get("name", "") or ""),
        type=item.get("type") or None,
        risk_calculation=item.get("risk_calculation") or None,
        approval_is_not_required=bool(item.get("approval_is_not_required", False)),
        does_submission_expire=_expire_flag(item.get("does_submission_expire", EXPIRE_YES)),
        expire_after_days=_as_int(
            item.get("expire_after_days", 0) or 0, f"expire_after_days of {label}",
        ),
        key_information=str(item.get("key_information", "") or ""),
        pillar_id=_opt_int(item.get("pillar"), f"pillar of {label}"),
        task_ids=_int_list(item.get("tasks"), f"tasks of {label}"),
        questions=_parse_questions(item.get("questions"), questionnaire_id=questionnaire_id),
    )


def _parse_answer(raw: Any, submission_id: int) -> SelectedAnswer:
    if not isinstance(raw, dict):
        return SelectedAnswer(
            selection_id=_as_int(raw, f"answer of submission {submission_id}"),
        )
    if raw.get("selection") in (None, ""):
        raise DatasetError(
            f"Invalid answer of submission {submission_id}: missing selection."
        )
    selection_id = _as_int(raw["selection"], f"answer of submission {submission_id}")
    risk_weights = None
    if "risks" in raw:
        risk_weights = _parse_risk_weights(raw["risks"], selection_id)
    return SelectedAnswer(selection_id=selection_id, risk_weights=risk_weights)


def _parse_date(value: Any, what: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise DatasetError(f"Invalid {what}: expected an ISO date, got {value!r}.") from exc


def _parse_submission(item: Dict[str, Any]) -> Submission:
    submission_id = _id(item, "submission")
    label = f"submission {submission_id}"
    if item.get("questionnaire") in (None, ""):
        raise DatasetError(f"Invalid dataset: {label} has no questionnaire.")
    answers = item.get("answers", []) or []
    if not isinstance(answers, list):
        raise DatasetError(f"Invalid answers of {label}: expected a list.")
    return Submission(
        id=submission_id,
        questionnaire_id=_as_int(item["questionnaire"], f"questionnaire of {label}"),
        answers=[_parse_answer(a, submission_id) for a in answers],
        component_ids=_int_list(item.get("components"), f"components of {label}"),
        outstanding_task_ids=_int_list(
            item.get("outstanding_tasks"), f"outstanding tasks of {label}",
        ),
        created=_parse_date(item.get("created"), f"created date of {label}"),
    )

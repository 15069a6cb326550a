"""Risk score engine.

Turns a submission's selected answers into weighted (control, risk) pairs
through the weight matrix and reduces them per scope with the formula the
questionnaire (or task) selects:

    answers -> risk weights -> weight matrix rows -> pair contributions
            -> formula -> questionnaire / task / pillar scores

Missing weight-matrix rows contribute nothing. Malformed weights and
ambiguous matrix rows raise :class:`ScoringError`, which :meth:`score_all`
confines to the submission being scored.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sdlt_risk.dataset import Dataset, Owner
from sdlt_risk.exceptions import ScoringError
from sdlt_risk.formulas import build_formula
from sdlt_risk.models.config import ScoringConfig
from sdlt_risk.models.questionnaire import Questionnaire
from sdlt_risk.models.score import (
    SCOPE_PILLAR,
    SCOPE_QUESTIONNAIRE,
    SCOPE_TASK,
    PairContribution,
    ScopeScore,
    ScoreReport,
    ScoringFailure,
)
from sdlt_risk.models.submission import Submission

logger = logging.getLogger(__name__)


@dataclass
class RiskInput:
    owner: Owner
    selection_id: int
    risk_id: int
    weight: int


def parse_weight(value: object, selection_id: int, risk_id: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ScoringError(
        f"Invalid weight {value!r} for risk {risk_id} on answer selection "
        f"{selection_id}: expected an integer."
    )


class RiskScoreEngine:
    def __init__(self, dataset: Dataset, config: Optional[ScoringConfig] = None) -> None:
        self.dataset = dataset
        self.config = config or ScoringConfig()

    def risk_inputs(self, submission: Submission) -> List[RiskInput]:
        """Resolve the risk-relevant (risk, weight) contributions of each answer."""
        inputs: List[RiskInput] = []
        for answer in submission.answers:
            selection = self.dataset.selection(answer.selection_id)
            if selection is None:
                raise ScoringError(
                    f"Submission {submission.id} refers to unknown answer selection "
                    f"{answer.selection_id}."
                )
            owner = self.dataset.owner_of(selection.id)
            if owner is None or not owner.is_risk_type():
                continue
            weights = (
                answer.risk_weights if answer.risk_weights is not None
                else selection.risk_weights
            )
            for risk_weight in weights:
                inputs.append(RiskInput(
                    owner=owner,
                    selection_id=selection.id,
                    risk_id=risk_weight.risk_id,
                    weight=parse_weight(risk_weight.weight, selection.id, risk_weight.risk_id),
                ))
        return inputs

    def pair_contributions(
        self,
        inputs: Iterable[RiskInput],
        component_ids: List[int],
    ) -> List[PairContribution]:
        controls = self.dataset.controls_in_scope(component_ids)
        pairs: List[PairContribution] = []
        for item in inputs:
            for component_id, control_id in controls:
                row = self.dataset.weight_matrix.lookup(item.risk_id, control_id, component_id)
                if row is None:
                    continue
                pairs.append(PairContribution(
                    selection_id=item.selection_id,
                    risk_id=item.risk_id,
                    control_id=control_id,
                    component_id=component_id,
                    weight=item.weight,
                    likelihood=row.likelihood,
                    impact=row.impact,
                    likelihood_penalty=row.likelihood_penalty,
                    impact_penalty=row.impact_penalty,
                ))
        return pairs

    def score_scope(
        self,
        scope: str,
        scope_id: int,
        name: str,
        formula_name: Optional[str],
        pairs: List[PairContribution],
    ) -> ScopeScore:
        formula = build_formula(formula_name, self.config)
        score, dominant = formula.reduce(pairs)

        control_totals: Dict[int, float] = {}
        for pair in pairs:
            control_totals[pair.control_id] = (
                control_totals.get(pair.control_id, 0.0) + formula.pair_score(pair)
            )

        return ScopeScore(
            scope=scope,
            scope_id=scope_id,
            name=name,
            formula=formula.name,
            score=score,
            dominant=dominant,
            contributions=pairs,
            control_totals=control_totals,
        )

    def score(self, submission: Submission, *, actor: Optional[str] = None) -> ScoreReport:
        questionnaire = self.dataset.questionnaires.get(submission.questionnaire_id)
        if questionnaire is None:
            raise ScoringError(
                f"Submission {submission.id} refers to unknown questionnaire "
                f"{submission.questionnaire_id}."
            )

        inputs = self.risk_inputs(submission)
        report = ScoreReport(
            submission_id=submission.id,
            questionnaire_id=questionnaire.id,
            questionnaire_name=questionnaire.name,
            approval_bypassed=questionnaire.bypasses_approval(
                len(submission.outstanding_task_ids),
            ),
            actor=actor,
        )

        for scope, scope_id, name, formula_name, owned in self._scopes(questionnaire, inputs):
            pairs = self.pair_contributions(owned, submission.component_ids)
            report.scopes.append(self.score_scope(scope, scope_id, name, formula_name, pairs))

        if questionnaire.submissions_expire():
            expires = submission.expires_on(questionnaire.get_expire_after_days(self.config))
            report.expires_on = expires.isoformat() if expires else None

        logger.info(
            "Scored submission %s of '%s' for %s: %s",
            submission.id, questionnaire.name, actor or "unknown user",
            ", ".join(f"{s.scope} {s.name}={s.score:g}" for s in report.scopes) or "no risk scopes",
        )
        return report

    def score_all(
        self,
        submissions: Optional[Iterable[Submission]] = None,
        *,
        actor: Optional[str] = None,
    ) -> Tuple[List[ScoreReport], List[ScoringFailure]]:
        reports: List[ScoreReport] = []
        failures: List[ScoringFailure] = []
        items = self.dataset.submissions if submissions is None else submissions
        for submission in items:
            try:
                reports.append(self.score(submission, actor=actor))
            except ScoringError as exc:
                logger.warning("Could not score submission %s: %s", submission.id, exc)
                failures.append(ScoringFailure(submission_id=submission.id, message=str(exc)))
        return reports, failures

    def _scopes(
        self,
        questionnaire: Questionnaire,
        inputs: List[RiskInput],
    ) -> List[Tuple[str, int, str, Optional[str], List[RiskInput]]]:
        scopes: List[Tuple[str, int, str, Optional[str], List[RiskInput]]] = []
        pillar_inputs: List[RiskInput] = []
        pillar_formula: Optional[str] = None

        if questionnaire.is_risk_type():
            pillar_formula = questionnaire.risk_calculation
            owned = [i for i in inputs if i.owner is questionnaire]
            pillar_inputs.extend(owned)
            scopes.append((
                SCOPE_QUESTIONNAIRE, questionnaire.id, questionnaire.name,
                questionnaire.risk_calculation, owned,
            ))

        for task_id in questionnaire.task_ids:
            task = self.dataset.tasks.get(task_id)
            if task is None or not task.is_risk_type():
                continue
            if pillar_formula is None:
                pillar_formula = task.risk_calculation
            owned = [i for i in inputs if i.owner is task]
            pillar_inputs.extend(owned)
            scopes.append((SCOPE_TASK, task.id, task.name, task.risk_calculation, owned))

        pillar = None
        if questionnaire.pillar_id is not None:
            pillar = self.dataset.pillars.get(questionnaire.pillar_id)
        if pillar is not None and pillar_formula is not None:
            scopes.append((
                SCOPE_PILLAR, pillar.id, pillar.name, pillar_formula, pillar_inputs,
            ))

        return scopes

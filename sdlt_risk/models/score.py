from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

SCOPE_QUESTIONNAIRE = "questionnaire"
SCOPE_TASK = "task"
SCOPE_PILLAR = "pillar"


@dataclass
class PairContribution:
    selection_id: int
    risk_id: int
    control_id: int
    component_id: int
    weight: int
    likelihood: int = 0
    impact: int = 0
    likelihood_penalty: int = 0
    impact_penalty: int = 0

    @property
    def raw_score(self) -> int:
        return self.weight * self.likelihood * self.impact

    @property
    def penalised_score(self) -> float:
        return (
            self.raw_score
            * (1 - self.likelihood_penalty / 100)
            * (1 - self.impact_penalty / 100)
        )


@dataclass
class ScopeScore:
    scope: str
    scope_id: int
    name: str
    formula: str
    score: float
    dominant: Optional[PairContribution] = None
    contributions: List[PairContribution] = field(default_factory=list)
    control_totals: Dict[int, float] = field(default_factory=dict)


@dataclass
class ScoreReport:
    submission_id: int
    questionnaire_id: int
    questionnaire_name: str
    scopes: List[ScopeScore] = field(default_factory=list)
    approval_bypassed: bool = False
    expires_on: Optional[str] = None
    actor: Optional[str] = None

    def scope(self, scope: str, scope_id: Optional[int] = None) -> Optional[ScopeScore]:
        for item in self.scopes:
            if item.scope == scope and (scope_id is None or item.scope_id == scope_id):
                return item
        return None


@dataclass
class ScoringFailure:
    submission_id: int
    message: str

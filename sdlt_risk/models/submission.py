from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sdlt_risk.models.questionnaire import SelectionRiskWeight


@dataclass
class SelectedAnswer:
    selection_id: int
    # None means "use the weights configured on the selection".
    risk_weights: Optional[List[SelectionRiskWeight]] = None


@dataclass
class Submission:
    id: int
    questionnaire_id: int
    answers: List[SelectedAnswer] = field(default_factory=list)
    component_ids: List[int] = field(default_factory=list)
    outstanding_task_ids: List[int] = field(default_factory=list)
    created: Optional[date] = None

    def expires_on(self, expire_after_days: int) -> Optional[date]:
        if self.created is None:
            return None
        return self.created + timedelta(days=expire_after_days)

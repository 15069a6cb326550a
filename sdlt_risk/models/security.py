from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Risk:
    id: int
    name: str
    likelihood: int = 0
    impact: int = 0


@dataclass
class SecurityControl:
    id: int
    name: str
    description: str = ""
    component_id: Optional[int] = None


@dataclass
class SecurityComponent:
    id: int
    name: str
    description: str = ""
    control_ids: List[int] = field(default_factory=list)


@dataclass
class ControlWeightSet:
    """One weight-matrix row for a (control, risk, component) triple."""

    id: int
    risk_id: Optional[int]
    control_id: int
    component_id: Optional[int] = None
    likelihood: int = 0
    impact: int = 0
    likelihood_penalty: int = 0
    impact_penalty: int = 0

    @property
    def key(self) -> tuple:
        return (self.control_id, self.risk_id, self.component_id)

"""Risk-calculation formulas selectable per questionnaire.

A formula reduces the (control, risk) pair contributions of one scope to a
single score and names the dominant pair. New formulas are added with
:func:`register_formula` under the name stored in ``RiskCalculation``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple, Type

from sdlt_risk.exceptions import ScoringError
from sdlt_risk.models.config import ScoringConfig
from sdlt_risk.models.questionnaire import CALC_MAXIMUM, CALC_NZTA_APPROX
from sdlt_risk.models.score import PairContribution

Reduction = Tuple[float, Optional[PairContribution]]


class RiskFormula(ABC):
    name: str = ""

    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self.config = config or ScoringConfig()

    @abstractmethod
    def pair_score(self, pair: PairContribution) -> float:
        ...

    @abstractmethod
    def reduce(self, pairs: List[PairContribution]) -> Reduction:
        ...


_FORMULAS: Dict[str, Type[RiskFormula]] = {}


def register_formula(name: str) -> Callable[[Type[RiskFormula]], Type[RiskFormula]]:
    def decorator(cls: Type[RiskFormula]) -> Type[RiskFormula]:
        cls.name = name
        _FORMULAS[name] = cls
        return cls
    return decorator


def build_formula(name: Optional[str], config: Optional[ScoringConfig] = None) -> RiskFormula:
    cls = _FORMULAS.get(name or "")
    if cls is None:
        raise ScoringError(
            f'Unknown risk-calculation type "{name}". '
            f"Expected one of: {', '.join(sorted(_FORMULAS))}."
        )
    return cls(config)


def formula_names() -> List[str]:
    return sorted(_FORMULAS)


@register_formula(CALC_MAXIMUM)
class MaximumFormula(RiskFormula):
    """Worst single finding dominates."""

    def pair_score(self, pair: PairContribution) -> float:
        return float(pair.raw_score)

    def reduce(self, pairs: List[PairContribution]) -> Reduction:
        if not pairs:
            return 0.0, None
        dominant = max(pairs, key=self.pair_score)
        return self.pair_score(dominant), dominant


@register_formula(CALC_NZTA_APPROX)
class NztaApproxFormula(RiskFormula):
    """Additive score with penalties applied as multiplicative discounts."""

    def pair_score(self, pair: PairContribution) -> float:
        return pair.penalised_score

    def reduce(self, pairs: List[PairContribution]) -> Reduction:
        if not pairs:
            return 0.0, None
        total = sum(self.pair_score(pair) for pair in pairs)
        dominant = max(pairs, key=self.pair_score)
        return float(max(total, self.config.score_floor)), dominant

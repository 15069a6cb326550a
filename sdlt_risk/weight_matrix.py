from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from sdlt_risk.exceptions import AmbiguousWeightError
from sdlt_risk.models.security import ControlWeightSet
from sdlt_risk.validation import ValidationResult, validate_weight_set

logger = logging.getLogger(__name__)

ParentResolver = Callable[[int], Optional[int]]
_Key = Tuple[int, Optional[int], Optional[int]]


class WeightMatrix:
    """The ControlWeightSet table, keyed by (control, risk, component).

    Rows passed to the constructor are taken as already stored: their
    component is resolved but they are not validated. New or edited rows go
    through :meth:`add`.
    """

    def __init__(
        self,
        rows: Optional[Iterable[ControlWeightSet]] = None,
        *,
        parent_of: Optional[ParentResolver] = None,
    ) -> None:
        self._parent_of = parent_of
        self._rows: List[ControlWeightSet] = []
        self._index: Dict[_Key, List[ControlWeightSet]] = {}
        for row in rows or []:
            self.resolve_component(row)
            self._insert(row)

    def __iter__(self) -> Iterator[ControlWeightSet]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def resolve_component(self, row: ControlWeightSet) -> None:
        """Fill in the row's component from its control's parent, if unset."""
        if row.component_id is not None or self._parent_of is None:
            return
        row.component_id = self._parent_of(row.control_id)
        logger.debug(
            "Weight set %s: derived component %s from control %s",
            row.id, row.component_id, row.control_id,
        )

    def validate(self, row: ControlWeightSet) -> ValidationResult:
        self.resolve_component(row)
        return validate_weight_set(row, self._rows)

    def add(self, row: ControlWeightSet) -> None:
        """Validate and store *row*, replacing a stored row with the same id."""
        self.validate(row).raise_if_invalid()
        self.remove(row.id)
        self._insert(row)

    def remove(self, row_id: int) -> None:
        kept = [row for row in self._rows if row.id != row_id]
        if len(kept) == len(self._rows):
            return
        # Rows may have been edited in place since they were indexed.
        self._rows = []
        self._index = {}
        for row in kept:
            self._insert(row)

    def lookup(
        self,
        risk_id: int,
        control_id: int,
        component_id: int,
    ) -> Optional[ControlWeightSet]:
        """Return the row for the triple, or None when no weighting is defined."""
        matches = self._index.get((control_id, risk_id, component_id), [])
        if len(matches) > 1:
            raise AmbiguousWeightError(
                f"Weight matrix holds {len(matches)} rows for control {control_id}, "
                f"risk {risk_id}, component {component_id} "
                f"(ids: {', '.join(str(m.id) for m in matches)})."
            )
        return matches[0] if matches else None

    def _insert(self, row: ControlWeightSet) -> None:
        self._rows.append(row)
        self._index.setdefault(row.key, []).append(row)

from __future__ import annotations

from typing import Optional

import pytest

from sdlt_risk.exceptions import AmbiguousWeightError, ValidationError
from sdlt_risk.models.security import ControlWeightSet
from sdlt_risk.weight_matrix import WeightMatrix


def _row(
    row_id: int = 1,
    risk_id: Optional[int] = 1,
    control_id: int = 100,
    component_id: Optional[int] = 10,
    likelihood: int = 5,
    impact: int = 5,
    likelihood_penalty: int = 0,
    impact_penalty: int = 0,
) -> ControlWeightSet:
    return ControlWeightSet(
        id=row_id,
        risk_id=risk_id,
        control_id=control_id,
        component_id=component_id,
        likelihood=likelihood,
        impact=impact,
        likelihood_penalty=likelihood_penalty,
        impact_penalty=impact_penalty,
    )


def _parents(control_id: int) -> Optional[int]:
    return {100: 10, 101: 10, 102: 11}.get(control_id)


class TestLookup:
    def test_returns_matching_row(self) -> None:
        row = _row()
        matrix = WeightMatrix([row])
        assert matrix.lookup(1, 100, 10) is row

    def test_missing_row_returns_none(self) -> None:
        matrix = WeightMatrix([_row()])
        assert matrix.lookup(2, 100, 10) is None
        assert matrix.lookup(1, 100, 11) is None

    def test_empty_matrix(self) -> None:
        assert WeightMatrix().lookup(1, 1, 1) is None

    def test_ambiguous_rows_are_flagged(self) -> None:
        matrix = WeightMatrix([_row(row_id=1), _row(row_id=2)])
        with pytest.raises(AmbiguousWeightError, match="2 rows"):
            matrix.lookup(1, 100, 10)


class TestComponentResolution:
    def test_component_derived_on_load(self) -> None:
        row = _row(component_id=None, control_id=102)
        matrix = WeightMatrix([row], parent_of=_parents)
        assert row.component_id == 11
        assert matrix.lookup(1, 102, 11) is row

    def test_explicit_component_kept(self) -> None:
        row = _row(component_id=99, control_id=102)
        WeightMatrix([row], parent_of=_parents)
        assert row.component_id == 99

    def test_derived_component_persisted_on_add(self) -> None:
        matrix = WeightMatrix(parent_of=_parents)
        row = _row(component_id=None, control_id=101)
        matrix.add(row)
        assert row.component_id == 10
        assert matrix.lookup(1, 101, 10) is row

    def test_derived_component_used_for_uniqueness(self) -> None:
        matrix = WeightMatrix([_row(row_id=1, control_id=100, component_id=10)], parent_of=_parents)
        duplicate = _row(row_id=2, control_id=100, component_id=None)
        with pytest.raises(ValidationError, match="unique Risk"):
            matrix.add(duplicate)


class TestAdd:
    def test_add_valid_row(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row())
        assert len(matrix) == 1

    def test_second_insert_of_same_triple_rejected(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row(row_id=1))
        with pytest.raises(ValidationError) as raised:
            matrix.add(_row(row_id=2))
        assert raised.value.messages == ["Please select a unique Risk for this Control."]
        assert len(matrix) == 1

    def test_same_control_different_risk_allowed(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row(row_id=1, risk_id=1))
        matrix.add(_row(row_id=2, risk_id=2))
        assert len(matrix) == 2

    def test_edit_in_place_replaces_row(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row(row_id=1, likelihood=3))
        matrix.add(_row(row_id=1, likelihood=9))
        assert len(matrix) == 1
        found = matrix.lookup(1, 100, 10)
        assert found is not None
        assert found.likelihood == 9

    def test_out_of_range_rejected(self) -> None:
        matrix = WeightMatrix()
        with pytest.raises(ValidationError, match="Likelihood should be a value between 0 and 10"):
            matrix.add(_row(likelihood=11))
        assert len(matrix) == 0

    def test_remove(self) -> None:
        matrix = WeightMatrix([_row(row_id=1)])
        matrix.remove(1)
        assert len(matrix) == 0
        assert matrix.lookup(1, 100, 10) is None

    def test_stored_row_edited_in_place(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row(row_id=1, risk_id=1))
        matrix.add(_row(row_id=2, risk_id=3, control_id=101))

        row = matrix.lookup(1, 100, 10)
        assert row is not None
        row.risk_id = 2
        matrix.add(row)

        assert len(matrix) == 2
        assert matrix.lookup(1, 100, 10) is None
        assert matrix.lookup(2, 100, 10) is row
        assert matrix.lookup(3, 101, 10) is not None

    def test_in_place_edit_to_taken_triple_rejected(self) -> None:
        matrix = WeightMatrix()
        matrix.add(_row(row_id=1, risk_id=1))
        matrix.add(_row(row_id=2, risk_id=2))

        row = matrix.lookup(1, 100, 10)
        assert row is not None
        row.risk_id = 2
        with pytest.raises(ValidationError, match="Please select a unique Risk for this Control"):
            matrix.add(row)

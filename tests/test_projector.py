"""
Tests for reducing vector batches and projecting vectors into the display cube.
"""

import pytest

from embedaxes.core.errors import EmptyInputError, UnknownStrategyError
from embedaxes.core.schema import LabeledVector, Point3D, ReductionResult
from embedaxes.vector.projector import AxisProjector, scale


@pytest.fixture
def projector():
    return AxisProjector()


@pytest.fixture
def unit_result():
    return ReductionResult(
        axis_indices=(0, 1, 2),
        axis_min=(0.0, 0.0, 0.0),
        axis_max=(4.0, 4.0, 4.0),
        strategy_id="variance-ranked-axes",
        strategy_name="Variance-ranked axes",
    )


def test_scale():
    assert scale(0.0, 0.0, 4.0, -2.0, 2.0) == -2.0
    assert scale(2.0, 0.0, 4.0, -2.0, 2.0) == 0.0
    assert scale(4.0, 0.0, 4.0, -2.0, 2.0) == 2.0


def test_scale_degenerate_range_is_midpoint():
    assert scale(7.0, 1.0, 1.0, -2.0, 2.0) == 0.0
    assert scale(7.0, 1.0, 1.0, 0.0, 10.0) == 5.0


class TestReduce:

    def test_reduce_with_registered_strategy(self, projector):
        result = projector.reduce([[1.0, -5.0, 0.0, 2.0], [1.0, 3.0, 0.0, -2.0]], "variance-ranked axes")
        assert result.axis_indices == (1, 3, 0)

    def test_reduce_unknown_strategy(self, projector):
        with pytest.raises(UnknownStrategyError):
            projector.reduce([[1.0, 2.0, 3.0]], "does-not-exist")

    def test_reduce_empty_batch(self, projector):
        with pytest.raises(EmptyInputError):
            projector.reduce([], "variance-ranked-axes")


class TestProject:

    def test_project_linear_rescale(self, projector, unit_result):
        assert projector.project((0.0, 2.0, 4.0), unit_result) == Point3D(-2.0, 0.0, 2.0)

    def test_project_degenerate_axis(self, projector):
        result = ReductionResult(axis_indices=(0, 0, 1), axis_min=(1.0, 1.0, 0.0), axis_max=(1.0, 1.0, 2.0))
        point = projector.project((1.0, 1.0), result)
        assert point == Point3D(0.0, 0.0, 0.0)

    def test_project_clamps_out_of_batch_vectors(self, projector, unit_result):
        point = projector.project((100.0, -100.0, 2.0), unit_result)
        assert point == Point3D(2.0, -2.0, 0.0)

    def test_project_stays_in_display_range(self, projector):
        vectors = [[0.5, -3.0, 9.0], [2.5, 1.0, -7.0], [-1.0, 0.0, 0.0]]
        result = projector.reduce(vectors)

        for vector in vectors + [[1000.0, -1000.0, 1e9]]:
            point = projector.project(vector, result)
            for coord in (point.x, point.y, point.z):
                assert -2.0 <= coord <= 2.0

    def test_custom_display_range(self, unit_result):
        projector = AxisProjector(display_range=(0.0, 1.0))
        assert projector.project((4.0, 2.0, 0.0), unit_result) == Point3D(1.0, 0.5, 0.0)

    def test_project_all(self, projector, unit_result):
        items = [LabeledVector("cat", (0.0, 0.0, 0.0)), LabeledVector("dog", (4.0, 4.0, 4.0))]
        points = projector.project_all(items, unit_result)

        assert points == [("cat", Point3D(-2.0, -2.0, -2.0)), ("dog", Point3D(2.0, 2.0, 2.0))]


def test_dimension_info(unit_result):
    info = AxisProjector.dimension_info(unit_result)
    assert info == {"algorithm": "Variance-ranked axes", "x": 0, "y": 1, "z": 2}


def test_dimension_info_without_result():
    info = AxisProjector.dimension_info(None)
    assert info == {"algorithm": "None", "x": None, "y": None, "z": None}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

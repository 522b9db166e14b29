"""
Unit tests for the hill chart position mapper and drag session.

Pure functions only — no app context or database is touched here, so these
run without the Flask fixtures doing anything beyond the autouse session.

Covers:
    - Forward mapping: anchors, peak, clamping, x monotonicity, y symmetry
    - Inverse mapping: round-trip for every integer position, out-of-range
      and non-finite pointer coordinates
    - Phase and progress-label bands
    - Drag session: optimistic moves, single commit on release, leave == up
"""

import math

import pytest

from app.services.hill_chart import (
    DEFAULT_START_POSITION,
    DOWNHILL,
    PHASE_THRESHOLD,
    UPHILL,
    ArcHill,
    BellHill,
    DragState,
    HillDragSession,
    HillPoint,
    get_hill_geometry,
    normalize_position,
    phase_from_position,
    progress_label,
    to_position_int,
)
from app.utils.numeric import clamp, is_finite_number, round_half_up

CURVES = ("arc", "bell")
POSITIONS = range(0, 101)


@pytest.fixture(params=CURVES)
def geometry(request):
    return get_hill_geometry(request.param)


# ═════════════════════════════════════════════════════════════════════════════
# Numeric helpers
# ═════════════════════════════════════════════════════════════════════════════


class TestNumericHelpers:
    def test_round_half_up_rounds_ties_upward(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(-0.5) == 0
        assert round_half_up(2.4999) == 2

    def test_is_finite_number_rejects_bool_nan_and_strings(self):
        assert is_finite_number(3)
        assert is_finite_number(3.5)
        assert not is_finite_number(True)
        assert not is_finite_number(float("nan"))
        assert not is_finite_number(float("inf"))
        assert not is_finite_number("42")
        assert not is_finite_number(None)

    def test_clamp(self):
        assert clamp(-5, 0, 100) == 0
        assert clamp(105, 0, 100) == 100
        assert clamp(42, 0, 100) == 42


# ═════════════════════════════════════════════════════════════════════════════
# Position normalization & phase
# ═════════════════════════════════════════════════════════════════════════════


class TestPhase:
    def test_start_and_end_phases(self):
        assert phase_from_position(0) == UPHILL
        assert phase_from_position(100) == DOWNHILL

    def test_threshold_boundary(self):
        assert phase_from_position(PHASE_THRESHOLD - 1) == UPHILL
        assert phase_from_position(PHASE_THRESHOLD) == DOWNHILL

    @pytest.mark.parametrize("position", POSITIONS)
    def test_phase_matches_threshold_everywhere(self, position):
        expected = UPHILL if position < PHASE_THRESHOLD else DOWNHILL
        assert phase_from_position(position) == expected

    def test_out_of_range_positions_are_clamped_before_phase(self):
        assert phase_from_position(-30) == UPHILL
        assert phase_from_position(250) == DOWNHILL

    def test_non_finite_position_normalizes_to_zero(self):
        assert normalize_position(float("nan")) == 0
        assert normalize_position(None) == 0
        assert phase_from_position(float("nan")) == UPHILL

    def test_to_position_int_clamps_and_rounds(self):
        assert to_position_int(-3) == 0
        assert to_position_int(130) == 100
        assert to_position_int(49.5) == 50
        assert to_position_int(49.4) == 49

    def test_default_start_position_is_uphill(self):
        assert phase_from_position(DEFAULT_START_POSITION) == UPHILL

    @pytest.mark.parametrize("position, label", [
        (0, "Just started"),
        (24, "Just started"),
        (25, "Making progress"),
        (49, "Making progress"),
        (50, "Clear path ahead"),
        (74, "Clear path ahead"),
        (75, "Almost done"),
        (100, "Almost done"),
    ])
    def test_progress_label_bands(self, position, label):
        assert progress_label(position) == label


# ═════════════════════════════════════════════════════════════════════════════
# Forward mapping
# ═════════════════════════════════════════════════════════════════════════════


class TestForwardMapping:
    def test_arc_anchors_and_peak(self):
        hill = ArcHill()
        left = hill.position_to_coordinates(0)
        right = hill.position_to_coordinates(100)
        peak = hill.position_to_coordinates(50)
        assert left.x == pytest.approx(100.0)
        assert left.y == pytest.approx(300.0)
        assert right.x == pytest.approx(700.0)
        assert right.y == pytest.approx(300.0)
        assert peak.x == pytest.approx(400.0)
        assert peak.y == pytest.approx(0.0, abs=1e-9)

    def test_bell_x_is_linear(self):
        hill = BellHill()
        assert hill.position_to_coordinates(0).x == pytest.approx(50.0)
        assert hill.position_to_coordinates(25).x == pytest.approx(225.0)
        assert hill.position_to_coordinates(100).x == pytest.approx(750.0)

    def test_anchors_match_extreme_positions(self, geometry):
        assert geometry.left_anchor() == geometry.position_to_coordinates(0)
        assert geometry.right_anchor() == geometry.position_to_coordinates(100)
        assert geometry.left_anchor().x == pytest.approx(geometry.min_x)
        assert geometry.right_anchor().x == pytest.approx(geometry.max_x)

    def test_x_strictly_increases(self, geometry):
        xs = [geometry.position_to_coordinates(p).x for p in POSITIONS]
        assert all(a < b for a, b in zip(xs, xs[1:]))

    @pytest.mark.parametrize("position", range(0, 51))
    def test_y_symmetric_around_peak(self, geometry, position):
        left = geometry.position_to_coordinates(position)
        right = geometry.position_to_coordinates(100 - position)
        assert left.y == pytest.approx(right.y, abs=1e-9)

    def test_peak_is_extreme_y(self, geometry):
        ys = [geometry.position_to_coordinates(p).y for p in POSITIONS]
        peak_y = geometry.peak().y
        # arc: peak is visually highest (smallest SVG y); bell: largest y
        assert peak_y == pytest.approx(min(ys)) or peak_y == pytest.approx(max(ys))

    def test_out_of_range_positions_clamp_to_anchors(self, geometry):
        assert geometry.position_to_coordinates(-20) == geometry.left_anchor()
        assert geometry.position_to_coordinates(150) == geometry.right_anchor()
        assert geometry.position_to_coordinates(float("nan")) == geometry.left_anchor()

    def test_curve_points_span_the_hill(self, geometry):
        points = geometry.curve_points(10)
        assert len(points) == 11
        assert points[0] == geometry.left_anchor()
        assert points[-1] == geometry.right_anchor()

    def test_hill_point_to_dict_rounds(self):
        assert HillPoint(1.23456, 7.891011).to_dict() == {"x": 1.23, "y": 7.89}

    def test_geometry_to_dict(self, geometry):
        data = geometry.to_dict()
        assert data["curve"] == geometry.curve
        assert set(data) == {"curve", "left_anchor", "peak", "right_anchor"}


# ═════════════════════════════════════════════════════════════════════════════
# Inverse mapping
# ═════════════════════════════════════════════════════════════════════════════


class TestInverseMapping:
    @pytest.mark.parametrize("position", POSITIONS)
    def test_round_trip_every_integer_position(self, geometry, position):
        x = geometry.position_to_coordinates(position).x
        assert geometry.coordinates_to_position(x) == position

    def test_pointer_outside_track_clamps(self, geometry):
        assert geometry.coordinates_to_position(geometry.min_x - 500) == 0
        assert geometry.coordinates_to_position(geometry.max_x + 500) == 100

    def test_non_finite_pointer_keeps_last_position(self, geometry):
        assert geometry.coordinates_to_position(float("nan"), last_position=42) == 42
        assert geometry.coordinates_to_position(float("inf"), last_position=73) == 73
        assert geometry.coordinates_to_position(float("nan")) == 0

    def test_arc_center_maps_to_midpoint(self):
        assert ArcHill().coordinates_to_position(400.0) == 50


# ═════════════════════════════════════════════════════════════════════════════
# Geometry factory
# ═════════════════════════════════════════════════════════════════════════════


class TestGeometryFactory:
    def test_known_curves(self):
        assert isinstance(get_hill_geometry("arc"), ArcHill)
        assert isinstance(get_hill_geometry("bell"), BellHill)

    def test_dimensions_are_forwarded(self):
        hill = get_hill_geometry("arc", center_x=200, center_y=150, radius=100)
        assert hill.left_anchor().x == pytest.approx(100.0)
        assert hill.right_anchor().x == pytest.approx(300.0)

    def test_unknown_curve_raises(self):
        with pytest.raises(ValueError, match="Unknown hill curve"):
            get_hill_geometry("quadratic")

    def test_degenerate_dimensions_raise(self):
        with pytest.raises(ValueError):
            ArcHill(radius=0)
        with pytest.raises(ValueError):
            BellHill(width=-10)


# ═════════════════════════════════════════════════════════════════════════════
# Drag session
# ═════════════════════════════════════════════════════════════════════════════


class TestDragSession:
    @pytest.fixture()
    def commits(self):
        return []

    @pytest.fixture()
    def drag(self, commits):
        return HillDragSession(
            ArcHill(), commit=lambda item_id, pos, phase: commits.append((item_id, pos, phase)),
        )

    def _x(self, drag, position):
        return drag.geometry.position_to_coordinates(position).x

    def test_move_is_optimistic_and_commit_happens_on_release(self, drag, commits):
        assert drag.pointer_down("wp-1", self._x(drag, 10), 10)
        update = drag.pointer_move(self._x(drag, 60))
        assert update.position == 60
        assert update.phase == DOWNHILL
        assert commits == []

        released = drag.pointer_up()
        assert released.to_dict() == {"id": "wp-1", "position": 60, "phase": DOWNHILL}
        assert commits == [("wp-1", 60, DOWNHILL)]
        assert drag.state is DragState.IDLE

    def test_grab_offset_is_preserved(self, drag, commits):
        # Grab 5 units to the right of the marker; the marker should not jump.
        grab = self._x(drag, 30) + 5
        drag.pointer_down("wp-1", grab, 30)
        assert drag.pointer_move(grab).position == 30
        assert drag.pointer_move(self._x(drag, 70) + 5).position == 70
        drag.pointer_up()
        assert commits == [("wp-1", 70, DOWNHILL)]

    def test_pointer_leave_commits_like_release(self, drag, commits):
        drag.pointer_down("wp-2", self._x(drag, 80), 80)
        drag.pointer_move(self._x(drag, 20))
        update = drag.pointer_leave()
        assert update.position == 20
        assert commits == [("wp-2", 20, UPHILL)]
        assert not drag.is_dragging

    def test_release_without_move_commits_start_position(self, drag, commits):
        drag.pointer_down("wp-3", self._x(drag, 45), 45)
        drag.pointer_up()
        assert commits == [("wp-3", 45, UPHILL)]

    def test_events_while_idle_are_ignored(self, drag, commits):
        assert drag.pointer_move(500.0) is None
        assert drag.pointer_up() is None
        assert drag.pointer_leave() is None
        assert commits == []

    def test_second_pointer_down_is_rejected(self, drag):
        assert drag.pointer_down("wp-1", self._x(drag, 10), 10)
        assert not drag.pointer_down("wp-2", self._x(drag, 90), 90)
        assert drag.item_id == "wp-1"

    def test_non_finite_move_keeps_last_good_position(self, drag, commits):
        drag.pointer_down("wp-1", self._x(drag, 10), 10)
        drag.pointer_move(self._x(drag, 35))
        update = drag.pointer_move(float("nan"))
        assert update.position == 35
        drag.pointer_up()
        assert commits == [("wp-1", 35, UPHILL)]

    def test_drag_past_edges_clamps(self, drag, commits):
        drag.pointer_down("wp-1", self._x(drag, 50), 50)
        assert drag.pointer_move(10_000.0).position == 100
        assert drag.pointer_move(-10_000.0).position == 0
        drag.pointer_up()
        assert commits == [("wp-1", 0, UPHILL)]

    def test_session_is_reusable_after_release(self, drag, commits):
        drag.pointer_down("wp-1", self._x(drag, 10), 10)
        drag.pointer_up()
        assert drag.pointer_down("wp-2", self._x(drag, 90), 90)
        drag.pointer_up()
        assert [c[0] for c in commits] == ["wp-1", "wp-2"]

    def test_committed_phase_always_matches_position(self, drag, commits):
        for target in (0, 49, 50, 51, 100):
            drag.pointer_down("wp", self._x(drag, 10), 10)
            drag.pointer_move(self._x(drag, target))
            drag.pointer_up()
        for _, position, phase in commits:
            assert phase == phase_from_position(position)
        assert not any(math.isnan(p) for _, p, _ in commits)

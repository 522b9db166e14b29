"""
Hill Chart Position Mapper

Maps a work package's progress scalar (0-100) onto a hill-shaped curve for
rendering, maps a pointer's horizontal coordinate back to progress while the
package is dragged, and derives the uphill/downhill phase.

Two curve families are available; an application instance uses exactly one,
chosen by the ``HILL_CURVE`` config key:

    arc   — semicircle, θ = (p/100)·π, x = cx − R·cos θ, y = cy − R·sin θ
    bell  — Gaussian, x = left + t·W, y = top + H·exp(−((t − 0.5)·k)² / 2)

Coordinates are SVG user units (y grows downward). The caller translates
pointer coordinates into this space before calling the inverse mapping.

Usage:
    from app.services.hill_chart import get_hill_geometry, phase_from_position

    hill = get_hill_geometry("arc")
    point = hill.position_to_coordinates(35)          # HillPoint(x=..., y=...)
    position = hill.coordinates_to_position(412.0)    # 51
    phase_from_position(position)                     # "downhill"
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from app.utils.numeric import clamp, is_finite_number, round_half_up

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════════
# Constants
# ═════════════════════════════════════════════════════════════════════════════

MIN_POSITION = 0
MAX_POSITION = 100

# position < PHASE_THRESHOLD → uphill ("figuring it out"), else downhill.
PHASE_THRESHOLD = 50

UPHILL = "uphill"
DOWNHILL = "downhill"
VALID_PHASES = frozenset({UPHILL, DOWNHILL})

# Position new work packages start at when the caller gives none.
DEFAULT_START_POSITION = 10

# Tooltip bands: (exclusive upper bound, label)
PROGRESS_LABELS: tuple[tuple[int, str], ...] = (
    (25, "Just started"),
    (50, "Making progress"),
    (75, "Clear path ahead"),
)
PROGRESS_LABEL_FINAL = "Almost done"


# ═════════════════════════════════════════════════════════════════════════════
# Position / phase helpers
# ═════════════════════════════════════════════════════════════════════════════

def normalize_position(position) -> float:
    """Clamp *position* into [0, 100]; non-numeric or non-finite input maps to 0."""
    if not is_finite_number(position):
        return float(MIN_POSITION)
    return float(clamp(position, MIN_POSITION, MAX_POSITION))


def to_position_int(position) -> int:
    """Normalize and round a position to the integer stored on a work package."""
    return int(clamp(round_half_up(normalize_position(position)), MIN_POSITION, MAX_POSITION))


def phase_from_position(position) -> str:
    """Return ``"uphill"`` below :data:`PHASE_THRESHOLD`, ``"downhill"`` otherwise."""
    return UPHILL if normalize_position(position) < PHASE_THRESHOLD else DOWNHILL


def progress_label(position) -> str:
    """Human-readable progress band for tooltips."""
    p = normalize_position(position)
    for upper, label in PROGRESS_LABELS:
        if p < upper:
            return label
    return PROGRESS_LABEL_FINAL


# ═════════════════════════════════════════════════════════════════════════════
# Geometry
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HillPoint:
    """A render coordinate on the hill."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": round(self.x, 2), "y": round(self.y, 2)}


class HillGeometry(ABC):
    """Forward/inverse mapping between progress and curve coordinates.

    Subclasses provide the parametric curve over ``t ∈ [0, 1]``: ``_x_at``
    must be strictly increasing and ``_y_at`` symmetric around ``t = 0.5``.
    """

    curve: str = ""

    @property
    @abstractmethod
    def min_x(self) -> float:
        """Horizontal coordinate of position 0."""

    @property
    @abstractmethod
    def max_x(self) -> float:
        """Horizontal coordinate of position 100."""

    @abstractmethod
    def _x_at(self, t: float) -> float: ...

    @abstractmethod
    def _y_at(self, t: float) -> float: ...

    @abstractmethod
    def _t_from_x(self, x: float) -> float: ...

    def position_to_coordinates(self, position) -> HillPoint:
        """Map a 0-100 position to its point on the curve (out-of-range input is clamped)."""
        t = normalize_position(position) / MAX_POSITION
        return HillPoint(self._x_at(t), self._y_at(t))

    def coordinates_to_position(self, x, last_position=None) -> int:
        """Map a horizontal pointer coordinate back to an integer position.

        The vertical coordinate plays no part: dragging is one-dimensional.
        A non-finite *x* returns *last_position* (or 0) unchanged so a bad
        pointer sample never breaks a drag gesture.
        """
        if not is_finite_number(x):
            logger.debug("Ignoring non-finite pointer x=%r", x)
            return to_position_int(last_position) if last_position is not None else MIN_POSITION
        t = self._t_from_x(clamp(x, self.min_x, self.max_x))
        return int(clamp(round_half_up(t * MAX_POSITION), MIN_POSITION, MAX_POSITION))

    def left_anchor(self) -> HillPoint:
        return self.position_to_coordinates(MIN_POSITION)

    def right_anchor(self) -> HillPoint:
        return self.position_to_coordinates(MAX_POSITION)

    def peak(self) -> HillPoint:
        return self.position_to_coordinates(PHASE_THRESHOLD)

    def curve_points(self, steps: int = 100) -> list[HillPoint]:
        """Sample the curve at ``steps + 1`` evenly spaced positions."""
        steps = max(int(steps), 1)
        return [
            self.position_to_coordinates(MAX_POSITION * i / steps)
            for i in range(steps + 1)
        ]

    def to_dict(self) -> dict:
        return {
            "curve": self.curve,
            "left_anchor": self.left_anchor().to_dict(),
            "peak": self.peak().to_dict(),
            "right_anchor": self.right_anchor().to_dict(),
        }


class ArcHill(HillGeometry):
    """Semicircular hill: position 0 and 100 sit on the baseline ``y = cy``."""

    curve = "arc"

    def __init__(self, center_x: float = 400.0, center_y: float = 300.0, radius: float = 300.0):
        if not radius > 0:
            raise ValueError("radius must be positive")
        self.center_x = float(center_x)
        self.center_y = float(center_y)
        self.radius = float(radius)

    @property
    def min_x(self) -> float:
        return self.center_x - self.radius

    @property
    def max_x(self) -> float:
        return self.center_x + self.radius

    def _x_at(self, t: float) -> float:
        return self.center_x - self.radius * math.cos(t * math.pi)

    def _y_at(self, t: float) -> float:
        return self.center_y - self.radius * math.sin(t * math.pi)

    def _t_from_x(self, x: float) -> float:
        # acos is only defined on [-1, 1]; float error can push the ratio past it
        ratio = clamp((self.center_x - x) / self.radius, -1.0, 1.0)
        return math.acos(ratio) / math.pi


class BellHill(HillGeometry):
    """Gaussian bell: x is linear in position, so the inverse is a straight rescale."""

    curve = "bell"

    def __init__(
        self,
        left: float = 50.0,
        top: float = 80.0,
        width: float = 700.0,
        height: float = 150.0,
        shape: float = 6.0,
    ):
        if not width > 0:
            raise ValueError("width must be positive")
        self.left = float(left)
        self.top = float(top)
        self.width = float(width)
        self.height = float(height)
        self.shape = float(shape)

    @property
    def min_x(self) -> float:
        return self.left

    @property
    def max_x(self) -> float:
        return self.left + self.width

    def _x_at(self, t: float) -> float:
        return self.left + t * self.width

    def _y_at(self, t: float) -> float:
        z = (t - 0.5) * self.shape
        return self.top + self.height * math.exp(-(z * z) / 2)

    def _t_from_x(self, x: float) -> float:
        return (x - self.left) / self.width


CURVE_FAMILIES: dict[str, type[HillGeometry]] = {
    ArcHill.curve: ArcHill,
    BellHill.curve: BellHill,
}


def get_hill_geometry(curve: str = "arc", **dimensions) -> HillGeometry:
    """Build the geometry for a configured curve family.

    Raises:
        ValueError: unknown curve name (a configuration error, not user input).
    """
    try:
        cls = CURVE_FAMILIES[curve]
    except KeyError:
        raise ValueError(
            f"Unknown hill curve {curve!r}; expected one of {sorted(CURVE_FAMILIES)}"
        ) from None
    return cls(**dimensions)


# ═════════════════════════════════════════════════════════════════════════════
# Drag interaction
# ═════════════════════════════════════════════════════════════════════════════

class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class DragUpdate:
    """Position/phase of the dragged package after a pointer event."""
    item_id: str
    position: int
    phase: str

    def to_dict(self) -> dict:
        return {"id": self.item_id, "position": self.position, "phase": self.phase}


CommitFn = Callable[[str, int, str], object]


class HillDragSession:
    """Idle → Dragging → Idle state machine for one hill chart.

    Moves only update the in-memory position (optimistic re-render); the
    commit callable runs once, on release. Pointer-leave is a release, not a
    rollback.
    """

    def __init__(self, geometry: HillGeometry, commit: CommitFn):
        self.geometry = geometry
        self._commit = commit
        self.state = DragState.IDLE
        self.item_id: str | None = None
        self.offset = 0.0
        self.position: int | None = None

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def _current(self) -> DragUpdate:
        return DragUpdate(self.item_id, self.position, phase_from_position(self.position))

    def pointer_down(self, item_id: str, pointer_x, current_position) -> bool:
        """Grab a marker. Returns False if a drag is already in progress."""
        if self.is_dragging:
            return False
        self.position = to_position_int(current_position)
        marker = self.geometry.position_to_coordinates(self.position)
        self.offset = pointer_x - marker.x if is_finite_number(pointer_x) else 0.0
        self.item_id = item_id
        self.state = DragState.DRAGGING
        return True

    def pointer_move(self, pointer_x) -> DragUpdate | None:
        """Recompute the dragged package's position; nothing is committed."""
        if not self.is_dragging:
            return None
        if is_finite_number(pointer_x):
            self.position = self.geometry.coordinates_to_position(
                pointer_x - self.offset, last_position=self.position,
            )
        return self._current()

    def pointer_up(self) -> DragUpdate | None:
        """Release: commit the current position and return to idle."""
        if not self.is_dragging:
            return None
        update = self._current()
        self.state = DragState.IDLE
        self.item_id = None
        self.offset = 0.0
        self.position = None
        self._commit(update.item_id, update.position, update.phase)
        return update

    def pointer_leave(self) -> DragUpdate | None:
        """Pointer left the chart mid-drag: same as release."""
        return self.pointer_up()

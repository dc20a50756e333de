import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from studyfocus.utils.constants import LANDMARK_COUNT, LANDMARK_TABLE_VERSION, LandmarkIdx

Point = Tuple[float, float]


class Direction(str, Enum):
    CENTER = "center"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    TILTED = "tilted"
    UNKNOWN = "unknown"


class DistractionType(str, Enum):
    LOOKING_DOWN_PHONE = "looking_down_phone"
    LOOKING_AWAY_LEFT = "looking_away_left"
    LOOKING_AWAY_RIGHT = "looking_away_right"
    LOOKING_DOWN = "looking_down"
    LOOKING_UP = "looking_up"
    HEAD_TILTED = "head_tilted"
    FACE_NOT_DETECTED = "face_not_detected"


@dataclass(frozen=True)
class LandmarkSet:
    """
    The nine semantic face points used for gaze estimation, normalized to
    [0,1] image coordinates. Order follows LandmarkIdx.
    """
    points: Tuple[Point, ...]
    version: str = LANDMARK_TABLE_VERSION

    def __post_init__(self):
        pts = tuple((float(p[0]), float(p[1])) for p in self.points)
        if len(pts) != LANDMARK_COUNT:
            raise ValueError(
                f"LandmarkSet {self.version} needs {LANDMARK_COUNT} points, got {len(pts)}"
            )
        if not all(math.isfinite(c) for p in pts for c in p):
            raise ValueError(f"LandmarkSet {self.version} has non-finite coordinates")
        object.__setattr__(self, 'points', pts)

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> "LandmarkSet":
        return cls(tuple(points))

    def __getitem__(self, idx: int) -> Point:
        return self.points[idx]

    @property
    def left_eye_inner(self) -> Point:
        return self.points[LandmarkIdx.LEFT_EYE_INNER]

    @property
    def left_eye_outer(self) -> Point:
        return self.points[LandmarkIdx.LEFT_EYE_OUTER]

    @property
    def right_eye_inner(self) -> Point:
        return self.points[LandmarkIdx.RIGHT_EYE_INNER]

    @property
    def right_eye_outer(self) -> Point:
        return self.points[LandmarkIdx.RIGHT_EYE_OUTER]

    @property
    def left_iris(self) -> Point:
        return self.points[LandmarkIdx.LEFT_IRIS]

    @property
    def right_iris(self) -> Point:
        return self.points[LandmarkIdx.RIGHT_IRIS]

    @property
    def nose_tip(self) -> Point:
        return self.points[LandmarkIdx.NOSE_TIP]

    @property
    def chin(self) -> Point:
        return self.points[LandmarkIdx.CHIN]

    @property
    def forehead(self) -> Point:
        return self.points[LandmarkIdx.FOREHEAD]


@dataclass(frozen=True)
class GazeVector:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Geometry:
    face_height: float
    vertical_alignment: float


@dataclass(frozen=True)
class FocusSample:
    direction: Direction
    raw_score: int
    distraction: Optional[DistractionType] = None
    streak: int = 0


@dataclass(frozen=True)
class FocusReading:
    """Per-frame payload handed to the consumer callback."""
    is_face_detected: bool
    direction: Direction
    focus_score: int
    distraction_type: Optional[DistractionType] = None

    def as_dict(self) -> dict:
        return {
            'isFaceDetected': self.is_face_detected,
            'direction': self.direction.value,
            'focusScore': self.focus_score,
            'distractionType': self.distraction_type.value if self.distraction_type else None,
        }


@dataclass(frozen=True, eq=False)
class EnrolledDescriptor:
    descriptor: np.ndarray
    label: str

    def __post_init__(self):
        arr = np.array(self.descriptor, dtype=np.float64).reshape(-1)
        arr.setflags(write=False)
        object.__setattr__(self, 'descriptor', arr)


EnrolledSet = List[EnrolledDescriptor]


@dataclass(frozen=True)
class MatchResult:
    matched: bool = False
    label: Optional[str] = None
    distance: float = math.inf

    @classmethod
    def no_match(cls) -> "MatchResult":
        return cls(False, None, math.inf)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))

from dataclasses import dataclass
from typing import Tuple

# --- SEMANTIC LANDMARK TABLE ---
# Index order of a LandmarkSet. Independent of any detector; adapters map
# their own mesh indices onto this table.
LANDMARK_TABLE_VERSION = "v1"

class LandmarkIdx:
    """Static constants for accessing LandmarkSet points."""
    LEFT_EYE_INNER = 0
    LEFT_EYE_OUTER = 1
    RIGHT_EYE_INNER = 2
    RIGHT_EYE_OUTER = 3
    LEFT_IRIS = 4
    RIGHT_IRIS = 5
    NOSE_TIP = 6
    CHIN = 7
    FOREHEAD = 8

LANDMARK_COUNT = 9

# --- FACE MESH INDICES (MediaPipe, refine_landmarks=True) ---
# Same order as LandmarkIdx.
FACE_MESH_IDX: Tuple[int, ...] = (
    133,  # left eye inner
    33,   # left eye outer
    362,  # right eye inner
    263,  # right eye outer
    468,  # left iris centre
    473,  # right iris centre
    1,    # nose tip
    152,  # chin
    10,   # forehead centre
)
FACE_MESH_REFINED_COUNT = 478

@dataclass(frozen=True)
class GazeCfg:
    prior_weight: float
    iris_weight: float

@dataclass(frozen=True)
class FocusCfg:
    horizontal: float
    vertical: float
    tilt: float
    phone: float
    extreme: float

@dataclass(frozen=True)
class SmoothCfg:
    window: int

@dataclass(frozen=True)
class MatchCfg:
    threshold: float

@dataclass(frozen=True)
class EnrollCfg:
    captures: int
    error_revert_sec: float

# Configuration constants
GAZE_PRIOR_WEIGHT = 0.6
GAZE_IRIS_WEIGHT = 0.3

HORIZONTAL_THRESHOLD = 0.045
VERTICAL_THRESHOLD = 0.055
TILT_THRESHOLD = 0.06
PHONE_THRESHOLD = 0.095
EXTREME_THRESHOLD = 0.12

STABLE_STREAK_BONUS_AFTER = 10
FACE_HEIGHT_RANGE = (0.25, 0.65)

SCORE_WINDOW = 5
MATCH_THRESHOLD = 0.5
REQUIRED_CAPTURES = 5
ERROR_REVERT_SEC = 2.0

CONFIG_PATH = "config/focus_config.yaml"

# Config instances
GAZE = GazeCfg(GAZE_PRIOR_WEIGHT, GAZE_IRIS_WEIGHT)
FOCUS = FocusCfg(HORIZONTAL_THRESHOLD, VERTICAL_THRESHOLD, TILT_THRESHOLD, PHONE_THRESHOLD, EXTREME_THRESHOLD)
SMOOTH = SmoothCfg(SCORE_WINDOW)
MATCH = MatchCfg(MATCH_THRESHOLD)
ENROLL = EnrollCfg(REQUIRED_CAPTURES, ERROR_REVERT_SEC)

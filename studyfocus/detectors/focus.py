import logging
import math
from typing import Callable, List, Optional, Tuple

from studyfocus.core.models import (
    Direction, DistractionType, FocusSample, GazeVector, Geometry, clamp_score,
)
from studyfocus.utils.config import load_section
from studyfocus.utils.constants import FACE_HEIGHT_RANGE, FOCUS, STABLE_STREAK_BONUS_AFTER, FocusCfg

log = logging.getLogger(__name__)

# (direction, distraction, score) chosen by a rule
RuleOutcome = Tuple[Direction, Optional[DistractionType], float]
Rule = Callable[[GazeVector, Geometry, FocusCfg], Optional[RuleOutcome]]


def _horizontal(x: float) -> Direction:
    return Direction.RIGHT if x > 0 else Direction.LEFT


def _away(x: float) -> DistractionType:
    return DistractionType.LOOKING_AWAY_RIGHT if x > 0 else DistractionType.LOOKING_AWAY_LEFT


def phone_rule(gaze: GazeVector, geometry: Geometry, cfg: FocusCfg) -> Optional[RuleOutcome]:
    """Looking far down, typically at a phone in the lap."""
    if gaze.y > cfg.phone:
        score = max(15.0, 100.0 - (gaze.y - cfg.phone) * 600.0)
        return Direction.DOWN, DistractionType.LOOKING_DOWN_PHONE, score
    return None


def extreme_turn_rule(gaze: GazeVector, geometry: Geometry, cfg: FocusCfg) -> Optional[RuleOutcome]:
    ax = abs(gaze.x)
    if ax > cfg.extreme:
        score = max(20.0, 100.0 - (ax - cfg.extreme) * 700.0)
        return _horizontal(gaze.x), _away(gaze.x), score
    return None


def horizontal_rule(gaze: GazeVector, geometry: Geometry, cfg: FocusCfg) -> Optional[RuleOutcome]:
    ax = abs(gaze.x)
    if ax > cfg.horizontal:
        distraction = _away(gaze.x) if ax > 1.5 * cfg.horizontal else None
        score = max(50.0, 100.0 - (ax - cfg.horizontal) * 400.0)
        return _horizontal(gaze.x), distraction, score
    return None


def vertical_rule(gaze: GazeVector, geometry: Geometry, cfg: FocusCfg) -> Optional[RuleOutcome]:
    ay = abs(gaze.y)
    if ay > cfg.vertical:
        down = gaze.y > 0
        distraction = None
        if ay > 1.4 * cfg.vertical:
            distraction = DistractionType.LOOKING_DOWN if down else DistractionType.LOOKING_UP
        score = max(55.0, 100.0 - (ay - cfg.vertical) * 350.0)
        return (Direction.DOWN if down else Direction.UP), distraction, score
    return None


def tilt_rule(gaze: GazeVector, geometry: Geometry, cfg: FocusCfg) -> Optional[RuleOutcome]:
    align = geometry.vertical_alignment
    if align > cfg.tilt:
        distraction = DistractionType.HEAD_TILTED if align > 1.5 * cfg.tilt else None
        score = max(65.0, 100.0 - align * 400.0)
        return Direction.TILTED, distraction, score
    return None


# Evaluated in order, first match wins. Phone posture must precede the
# horizontal checks so a downward glance is never reported as a turn.
DEFAULT_RULES: List[Tuple[str, Rule]] = [
    ('phone', phone_rule),
    ('extreme_turn', extreme_turn_rule),
    ('horizontal', horizontal_rule),
    ('vertical', vertical_rule),
    ('tilt', tilt_rule),
]


class FocusClassifier:
    """
    Maps a smoothed gaze vector and face geometry to a focus sample:
    - ordered threshold rules pick direction, distraction and base score
    - steady centred gaze earns a bonus once the streak passes 10 frames
    - a comfortable camera distance (face height) earns a small bonus
    """

    def __init__(self, thresholds: Optional[FocusCfg] = None, config_path: Optional[str] = None,
                 rules: Optional[List[Tuple[str, Rule]]] = None):
        if thresholds is None:
            thresholds = FocusCfg(**self._load_config(config_path))
        self._validate(thresholds)
        self.cfg = thresholds
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

        log.info(
            f"FocusClassifier initialized (h={self.cfg.horizontal}, v={self.cfg.vertical}, "
            f"tilt={self.cfg.tilt}, phone={self.cfg.phone}, extreme={self.cfg.extreme})"
        )

    def _load_config(self, path):
        defaults = {
            'horizontal': FOCUS.horizontal,
            'vertical': FOCUS.vertical,
            'tilt': FOCUS.tilt,
            'phone': FOCUS.phone,
            'extreme': FOCUS.extreme,
        }
        cfg = load_section(path, 'focus', defaults)
        return {k: float(v) for k, v in cfg.items()}

    @staticmethod
    def _validate(cfg: FocusCfg):
        for name in ('horizontal', 'vertical', 'tilt', 'phone', 'extreme'):
            value = getattr(cfg, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Focus threshold '{name}' must be a non-negative number, got {value}")

    def classify(self, gaze: GazeVector, geometry: Geometry, streak: int = 0) -> FocusSample:
        if streak < 0:
            raise ValueError(f"streak must be non-negative, got {streak}")

        outcome = None
        for name, rule in self.rules:
            outcome = rule(gaze, geometry, self.cfg)
            if outcome is not None:
                log.debug(f"Rule '{name}' matched: {outcome[0].value} score={outcome[2]:.1f}")
                break

        if outcome is None:
            direction, distraction, score = Direction.CENTER, None, 100.0
        else:
            direction, distraction, score = outcome

        if direction == Direction.CENTER:
            streak += 1
            if streak > STABLE_STREAK_BONUS_AFTER:
                score = min(100.0, score + 5.0)
        else:
            streak = max(0, streak - 2)

        lo, hi = FACE_HEIGHT_RANGE
        if lo <= geometry.face_height <= hi:
            score = min(100.0, score + 3.0)

        return FocusSample(direction, clamp_score(score), distraction, streak)

    def classify_no_face(self) -> FocusSample:
        return FocusSample(Direction.UNKNOWN, 0, DistractionType.FACE_NOT_DETECTED, 0)

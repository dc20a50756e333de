import time
import logging
from collections import Counter
from typing import Callable, List, Optional

from studyfocus.core.models import DistractionType, FocusReading

log = logging.getLogger(__name__)


class FocusEventLog:
    """
    Per-session bookkeeping of distraction episodes.

    An episode opens when the distraction label changes to a non-null value
    and closes when the label changes again (to another label or to none).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.reset()

    def reset(self):
        self.episodes: List[dict] = []
        self.counts: Counter = Counter()
        self._current: Optional[dict] = None
        self._frames = 0
        self._score_sum = 0
        self._started_at = self._clock()

    def record(self, reading: FocusReading) -> bool:
        """Returns True when this reading starts a new distraction episode."""
        now = self._clock()
        self._frames += 1
        self._score_sum += reading.focus_score

        label = reading.distraction_type
        current_label = self._current['type'] if self._current else None
        if label == current_label:
            return False

        self._close_episode(now)
        if label is None:
            return False

        self._current = {'type': label, 'start': now, 'end': None, 'duration': 0.0}
        self.counts[label] += 1
        log.info(f"[FOCUS] Distraction: {label.value} (score={reading.focus_score})")
        return True

    def close(self):
        """Close any open episode (call when monitoring stops)."""
        self._close_episode(self._clock())

    def _close_episode(self, now: float):
        if self._current is None:
            return
        self._current['end'] = now
        self._current['duration'] = now - self._current['start']
        self.episodes.append(self._current)
        log.debug(f"[FOCUS] Episode closed: {self._current['type'].value} ({self._current['duration']:.1f}s)")
        self._current = None

    @property
    def current_distraction(self) -> Optional[DistractionType]:
        return self._current['type'] if self._current else None

    def summary(self) -> dict:
        distracted = sum(e['duration'] for e in self.episodes)
        if self._current is not None:
            distracted += self._clock() - self._current['start']
        return {
            'frames': self._frames,
            'average_score': (self._score_sum / self._frames) if self._frames else 0.0,
            'distractions': {k.value: v for k, v in self.counts.items()},
            'distracted_seconds': distracted,
            'elapsed_seconds': self._clock() - self._started_at,
        }

import logging
from collections import deque
from typing import Iterable, Optional, Tuple

import numpy as np

from studyfocus.core.models import round_half_up
from studyfocus.utils.config import load_section
from studyfocus.utils.constants import SMOOTH

log = logging.getLogger(__name__)

ScoreBuffer = Tuple[int, ...]


class ScoreSmoother:
    """
    Rolling mean over the last `window` raw scores.
    Buffers are plain tuples; push() never mutates the one it is given.
    """

    def __init__(self, window: Optional[int] = None, config_path: Optional[str] = None):
        if window is None:
            window = int(load_section(config_path, 'smoothing', {'window': SMOOTH.window})['window'])
        if window < 1:
            raise ValueError(f"Smoothing window must be at least 1, got {window}")
        self.window = window

    @staticmethod
    def empty() -> ScoreBuffer:
        return ()

    def push(self, buffer: Iterable[int], raw_score: int) -> Tuple[int, ScoreBuffer]:
        if not 0 <= raw_score <= 100:
            raise ValueError(f"raw_score must be within [0, 100], got {raw_score}")

        history = deque(buffer, maxlen=self.window)
        history.append(round_half_up(raw_score))

        smoothed = round_half_up(float(np.mean(history)))
        return smoothed, tuple(history)

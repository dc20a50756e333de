import logging
from threading import Lock
from typing import Optional

from studyfocus.core.models import FocusReading, FocusSample, GazeVector, LandmarkSet
from studyfocus.detectors.focus import FocusClassifier
from studyfocus.detectors.gaze import GazeEstimator
from studyfocus.detectors.score_smoother import ScoreBuffer, ScoreSmoother
from studyfocus.services.system_logger import FocusEventLog

log = logging.getLogger(__name__)


class FocusSession:
    """
    State of one monitoring session: score buffer, stability streak and gaze
    prior. Both start_session() and stop_session() clear all three, so
    nothing leaks from one session into the next.
    """

    def __init__(
        self,
        estimator: Optional[GazeEstimator] = None,
        classifier: Optional[FocusClassifier] = None,
        smoother: Optional[ScoreSmoother] = None,
        event_log: Optional[FocusEventLog] = None,
        config_path: Optional[str] = None
    ):
        self.estimator = estimator or GazeEstimator(config_path=config_path)
        self.classifier = classifier or FocusClassifier(config_path=config_path)
        self.smoother = smoother or ScoreSmoother(config_path=config_path)
        self.event_log = event_log or FocusEventLog()

        # Non-blocking: a frame arriving mid-pass is dropped, never queued
        self._pass_lock = Lock()

        self.active = False
        self.dropped_frames = 0
        self._clear()

    def _clear(self):
        self.buffer: ScoreBuffer = self.smoother.empty()
        self.streak = 0
        self.gaze: GazeVector = self.estimator.initial_gaze()
        self.last_sample: Optional[FocusSample] = None
        self.last_reading: Optional[FocusReading] = None

    def start_session(self):
        self._clear()
        self.dropped_frames = 0
        self.event_log.reset()
        self.active = True
        log.info("Focus session started")

    def stop_session(self):
        if self.active:
            self.event_log.close()
            log.info(f"Focus session stopped: {self.event_log.summary()}")
        self._clear()
        self.active = False

    def process(self, landmarks: Optional[LandmarkSet]) -> Optional[FocusReading]:
        """
        One estimate -> classify -> smooth pass for a frame.
        `landmarks` is None when no face was found. Returns None if the frame
        was dropped because another pass is still running.
        """
        if not self.active:
            raise RuntimeError("Focus session is not started")

        if not self._pass_lock.acquire(blocking=False):
            self.dropped_frames += 1
            log.debug(f"Frame dropped (pass in flight, total={self.dropped_frames})")
            return None

        try:
            if landmarks is None:
                sample = self.classifier.classify_no_face()
            else:
                self.gaze, geometry = self.estimator.estimate(landmarks, self.gaze)
                sample = self.classifier.classify(self.gaze, geometry, self.streak)

            self.streak = sample.streak
            score, self.buffer = self.smoother.push(self.buffer, sample.raw_score)

            reading = FocusReading(
                is_face_detected=landmarks is not None,
                direction=sample.direction,
                focus_score=score,
                distraction_type=sample.distraction,
            )
            self.event_log.record(reading)
            self.last_sample = sample
            self.last_reading = reading
            return reading
        finally:
            self._pass_lock.release()

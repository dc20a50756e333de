import logging
from typing import Callable, Optional

from studyfocus.core.models import FocusReading
from studyfocus.core.session import FocusSession
from studyfocus.infrastructure.hardware.camera import CameraError

log = logging.getLogger(__name__)


class FocusMonitor:
    """
    Frame loop: camera -> landmark model -> focus session -> consumer.

    The camera is acquired at the start of run() and released, together with
    the landmark model, on every exit path.
    """

    MAX_READ_FAILURES = 30  # ~1 second at 30 FPS

    def __init__(self, camera, face_model, session: FocusSession,
                 on_result: Optional[Callable[[FocusReading], None]] = None):
        self.camera = camera
        self.face_model = face_model
        self.session = session
        self.on_result = on_result

        self._frame_idx = 0
        self._read_failures = 0
        self._stop_requested = False

    def run(self, max_frames: Optional[int] = None):
        log.info("Starting focus monitoring loop...")
        self._stop_requested = False
        self._frame_idx = 0
        self._read_failures = 0
        try:
            self.camera.start()
            self.session.start_session()

            while not self._stop_requested:
                if max_frames is not None and self._frame_idx >= max_frames:
                    break
                self.process_frame()

        except CameraError as e:
            log.error(f"Monitoring aborted: {e}")
            raise
        finally:
            self.session.stop_session()
            self.face_model.close()
            self.camera.release()
            log.info(f"Monitoring loop finished after {self._frame_idx} frames")

    def stop(self):
        self._stop_requested = True

    def process_frame(self) -> Optional[FocusReading]:
        self._frame_idx += 1
        frame = self.camera.read()
        if frame is None:
            self._read_failures += 1
            if self._read_failures >= self.MAX_READ_FAILURES:
                raise CameraError(f"Camera stopped delivering frames ({self._read_failures} failed reads)")
            return None
        self._read_failures = 0

        landmarks = self.face_model.landmarks(frame)
        reading = self.session.process(landmarks)
        if reading is not None and self.on_result is not None:
            self.on_result(reading)
        return reading

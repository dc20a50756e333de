import logging
import cv2
import numpy as np
from typing import Optional, Tuple, Union

log = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Video source could not be acquired; monitoring cannot proceed."""


class Camera:
    """
    OpenCV webcam returning RGB frames.

    start() acquires the device, release() frees it; both are idempotent.
    Use as a context manager to pair them on every exit path.
    """

    def __init__(self, source: Union[int, str] = 0, resolution: Tuple[int, int] = (640, 480)):
        self.source = source
        self.resolution = resolution
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def ready(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def start(self) -> "Camera":
        if self.ready:
            return self

        cap = cv2.VideoCapture(self.source)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Camera failed to open (source={self.source})")

        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_CONVERT_RGB, 1)
        self._cap = cap
        log.info(f"Camera started (source={self.source}, {w}x{h})")
        return self

    def read(self) -> Optional[np.ndarray]:
        if not self.ready:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            log.info("Camera released")

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

import time
import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from studyfocus.utils.config import load_section
from studyfocus.utils.constants import ENROLL

log = logging.getLogger(__name__)

MSG_READY = "Position your face in the frame"
MSG_CAPTURING = "Stay still... capturing face"
MSG_NO_FACE = "Face not detected. Please position your face clearly in the frame."
MSG_COMPLETE = "Face registration complete!"


class EnrollmentState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    ERROR = "error"
    SUCCESS = "success"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class EnrollmentStatus:
    state: EnrollmentState
    count: int
    required: int
    message: str

    @property
    def progress(self) -> float:
        return 100.0 * self.count / self.required


class EnrollmentFlow:
    """
    Collects `required_captures` face descriptors for one identity.

    capture() is a blocking, single-attempt operation. A failed attempt puts
    the flow in ERROR, which reads as IDLE again once `error_revert_sec` has
    passed. The completion callback fires exactly once, with exactly
    `required_captures` descriptors in capture order.
    """

    def __init__(
        self,
        extractor,
        on_complete: Optional[Callable[[List[np.ndarray]], None]] = None,
        required_captures: Optional[int] = None,
        error_revert_sec: Optional[float] = None,
        config_path: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        cfg = self._load_config(config_path)
        if required_captures is not None:
            cfg['required_captures'] = required_captures
        if error_revert_sec is not None:
            cfg['error_revert_sec'] = error_revert_sec

        self.required = int(cfg['required_captures'])
        self.error_revert_sec = float(cfg['error_revert_sec'])
        if self.required < 1:
            raise ValueError(f"required_captures must be at least 1, got {self.required}")
        if self.error_revert_sec < 0:
            raise ValueError(f"error_revert_sec must be non-negative, got {self.error_revert_sec}")

        self.extractor = extractor
        self.on_complete = on_complete
        self._clock = clock

        self._descriptors: List[np.ndarray] = []
        self._state = EnrollmentState.IDLE
        self._message = MSG_READY
        self._error_until = 0.0
        self._capturing = False
        self._completed = False

        log.info(f"EnrollmentFlow initialized (captures={self.required})")

    def _load_config(self, path):
        defaults = {
            'required_captures': ENROLL.captures,
            'error_revert_sec': ENROLL.error_revert_sec,
        }
        return load_section(path, 'enrollment', defaults)

    @property
    def state(self) -> EnrollmentState:
        if self._state == EnrollmentState.ERROR and self._clock() >= self._error_until:
            self._set(EnrollmentState.IDLE, MSG_READY)
        return self._state

    @property
    def count(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> List[np.ndarray]:
        return [d.copy() for d in self._descriptors]

    @property
    def status(self) -> EnrollmentStatus:
        return EnrollmentStatus(self.state, self.count, self.required, self._message)

    def _set(self, state: EnrollmentState, message: str):
        self._state = state
        self._message = message

    def capture(self, frame) -> EnrollmentStatus:
        state = self.state
        if self._capturing:
            log.warning("Capture ignored: another capture is still in progress")
            return self.status
        if state in (EnrollmentState.SUCCESS, EnrollmentState.CANCELLED):
            log.warning(f"Capture ignored: enrollment already {state.value}")
            return self.status

        self._capturing = True
        self._set(EnrollmentState.CAPTURING, MSG_CAPTURING)
        try:
            descriptor = self.extractor.extract(frame)
        except Exception:
            self._capturing = False
            if self._state == EnrollmentState.CAPTURING:
                self._set(EnrollmentState.IDLE, MSG_READY)
            raise
        self._capturing = False

        if self._state == EnrollmentState.CANCELLED:
            log.info("Capture finished after cancel; result discarded")
            return self.status

        if descriptor is None:
            self._error_until = self._clock() + self.error_revert_sec
            self._set(EnrollmentState.ERROR, MSG_NO_FACE)
            log.info(f"Enrollment capture failed: no face ({self.count}/{self.required})")
            return self.status

        self._descriptors.append(np.array(descriptor, dtype=np.float32).reshape(-1))

        if self.count >= self.required:
            self._set(EnrollmentState.SUCCESS, MSG_COMPLETE)
            log.info(f"✓ Enrollment complete: {self.count} descriptors")
            self._fire_complete()
        else:
            self._set(
                EnrollmentState.IDLE,
                f"Captured {self.count}/{self.required}. Move your head slightly and capture again."
            )
            log.info(f"Enrollment progress: {self.count}/{self.required}")
        return self.status

    def _fire_complete(self):
        if self._completed:
            return
        self._completed = True
        if self.on_complete is not None:
            self.on_complete(self.descriptors)

    def reset(self) -> bool:
        """Discard captured descriptors. Refused once enrollment has finished or was cancelled."""
        state = self.state
        if state in (EnrollmentState.SUCCESS, EnrollmentState.CANCELLED):
            log.warning(f"Reset refused: enrollment already {state.value}")
            return False
        self._descriptors.clear()
        self._error_until = 0.0
        self._set(EnrollmentState.IDLE, MSG_READY)
        log.info("Enrollment reset")
        return True

    def cancel(self):
        if self._state == EnrollmentState.CANCELLED:
            return
        self._descriptors.clear()
        self._set(EnrollmentState.CANCELLED, "Enrollment cancelled")
        log.info("Enrollment cancelled")

import logging
import os
from typing import Callable, Optional

from studyfocus.core.detection_loop import FocusMonitor
from studyfocus.core.models import FocusReading
from studyfocus.core.session import FocusSession
from studyfocus.infrastructure.hardware.camera import Camera, CameraError
from studyfocus.mediapipe.mediapipe_wrapper import MediaPipeFaceModel
from studyfocus.utils.config import configure_logging, load_config
from studyfocus.utils.constants import CONFIG_PATH

log = logging.getLogger(__name__)


def _env_camera_source():
    """SF_CAMERA as a device index, or as a path/URL when not numeric."""
    source = os.getenv('SF_CAMERA', '0').strip()
    return int(source) if source.isdigit() else source


class FocusSystem:
    """Wires camera, Face Mesh and a focus session for a live study session."""

    def __init__(self, config_path: str = CONFIG_PATH):
        self.config_path = config_path
        self.config = load_config(config_path)
        sys_cfg = self.config.get('system', {}) or {}
        self.camera_source = sys_cfg['camera_source'] if 'camera_source' in sys_cfg else _env_camera_source()
        self.resolution = tuple(sys_cfg.get('resolution', (640, 480)))
        self.log_level = str(sys_cfg.get('log_level', 'INFO')).upper()
        self.log_file = sys_cfg.get('log_file')

        self.monitor: Optional[FocusMonitor] = None

    def run(self, on_result: Optional[Callable[[FocusReading], None]] = None,
            max_frames: Optional[int] = None):
        configure_logging(getattr(logging, self.log_level, logging.INFO), self.log_file)
        session = FocusSession(config_path=self.config_path)
        try:
            self.monitor = FocusMonitor(
                camera=Camera(self.camera_source, self.resolution),
                face_model=MediaPipeFaceModel(max_num_faces=1),
                session=session,
                on_result=on_result or self._log_reading,
            )
            log.info("System ready. Press Ctrl+C to stop.")
            self.monitor.run(max_frames=max_frames)
        except KeyboardInterrupt:
            log.info("User requested shutdown.")
        except CameraError as e:
            log.error(f"Fatal: {e}")
            raise
        return session.event_log.summary()

    def stop(self):
        if self.monitor is not None:
            self.monitor.stop()

    @staticmethod
    def _log_reading(reading: FocusReading):
        log.debug(f"Focus: {reading.as_dict()}")

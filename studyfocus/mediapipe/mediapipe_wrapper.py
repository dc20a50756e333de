import logging
import mediapipe as mp
import numpy as np
from typing import Optional

from studyfocus.core.models import LandmarkSet
from studyfocus.utils.landmarks import first_face

log = logging.getLogger(__name__)


class MediaPipeFaceModel:
    """
    Landmark capability backed by MediaPipe Face Mesh.
    Iris refinement is required for the gaze estimator.
    """
    def __init__(
        self,
        static_image_mode=False,
        max_num_faces=1,
        min_detection_confidence=0.5,
        min_tracking_confidence=0.5
    ):
        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=static_image_mode,
            max_num_faces=max_num_faces,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence
        )
        log.info("MediaPipe Face Mesh loaded (refined landmarks)")

    def process(self, image: np.ndarray):
        """Raw MediaPipe results (multi_face_landmarks). Expects RGB."""
        return self.face_mesh.process(image)

    def landmarks(self, image: np.ndarray) -> Optional[LandmarkSet]:
        """Zero or one LandmarkSet for the frame."""
        return first_face(self.process(image))

    def close(self):
        """Release resources."""
        self.face_mesh.close()

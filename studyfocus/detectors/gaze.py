"""
GAZE ESTIMATOR
Combines a nose-tip head-pose proxy with the iris offset inside each eye,
then applies exponential smoothing against the previous gaze.
"""

import logging
from typing import Optional, Tuple

from studyfocus.core.models import GazeVector, Geometry, LandmarkSet
from studyfocus.utils.config import load_section
from studyfocus.utils.constants import GAZE

log = logging.getLogger(__name__)


class GazeEstimator:
    """
    Stateless gaze estimator. The smoothed gaze is returned to the caller,
    which passes it back in as the prior of the next frame.
    """

    EYE_WIDTH_EPS = 1e-6

    def __init__(self, prior_weight: Optional[float] = None, iris_weight: Optional[float] = None,
                 config_path: Optional[str] = None):
        cfg = self._load_config(config_path)
        if prior_weight is not None:
            cfg['prior_weight'] = prior_weight
        if iris_weight is not None:
            cfg['iris_weight'] = iris_weight

        self.prior_weight = float(cfg['prior_weight'])
        self.iris_weight = float(cfg['iris_weight'])

        for name, value in (('prior_weight', self.prior_weight), ('iris_weight', self.iris_weight)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

        log.info(f"GazeEstimator initialized (prior={self.prior_weight}, iris={self.iris_weight})")

    def _load_config(self, path):
        defaults = {
            'prior_weight': GAZE.prior_weight,
            'iris_weight': GAZE.iris_weight,
        }
        return load_section(path, 'gaze', defaults)

    @staticmethod
    def initial_gaze() -> GazeVector:
        """Prior for a fresh session."""
        return GazeVector(0.0, 0.0)

    def estimate(self, landmarks: LandmarkSet, prior: Optional[GazeVector] = None) -> Tuple[GazeVector, Geometry]:
        if prior is None:
            prior = self.initial_gaze()

        left_center = _midpoint(landmarks.left_eye_inner, landmarks.left_eye_outer)
        right_center = _midpoint(landmarks.right_eye_inner, landmarks.right_eye_outer)

        left_offset = self._iris_offset(landmarks.left_iris, left_center,
                                        landmarks.left_eye_inner, landmarks.left_eye_outer)
        right_offset = self._iris_offset(landmarks.right_iris, right_center,
                                         landmarks.right_eye_inner, landmarks.right_eye_outer)
        iris_offset = (left_offset + right_offset) / 2.0

        # Head-pose proxy: nose tip relative to the point between the eyes
        eyes_mid = _midpoint(left_center, right_center)
        nose = landmarks.nose_tip
        head_x = nose[0] - eyes_mid[0]
        head_y = nose[1] - eyes_mid[1]

        raw_x = head_x + self.iris_weight * iris_offset
        raw_y = head_y

        a = self.prior_weight
        gaze = GazeVector(
            x=prior.x * a + raw_x * (1.0 - a),
            y=prior.y * a + raw_y * (1.0 - a),
        )

        face_height = abs(landmarks.forehead[1] - landmarks.chin[1])
        mean_x = (left_center[0] + right_center[0] + nose[0]) / 3.0
        geometry = Geometry(face_height=face_height, vertical_alignment=abs(nose[0] - mean_x))

        log.debug(
            f"Gaze raw=({raw_x:.4f}, {raw_y:.4f}) smoothed=({gaze.x:.4f}, {gaze.y:.4f}) "
            f"iris={iris_offset:.4f} face_h={face_height:.3f}"
        )
        return gaze, geometry

    def _iris_offset(self, iris, center, inner, outer) -> float:
        width = abs(outer[0] - inner[0])
        # SAFETY: collapsed eye corners (profile view) would divide by zero
        if width < self.EYE_WIDTH_EPS:
            return 0.0
        return (iris[0] - center[0]) / width


def _midpoint(a, b):
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)

import time
import logging
import numpy as np
import torch
import torch.nn.functional as F
from PIL import Image
from typing import Optional

from studyfocus.utils.face_recognition.image_validator import ImageValidator
from studyfocus.utils.face_recognition.model_loader import FaceModelLoader

log = logging.getLogger(__name__)


class FaceEncodingExtractor:
    """
    Embedding capability: one frame in, zero or one face descriptor out.

    Process:
    1. Detect faces using MTCNN
    2. Select highest confidence face
    3. Extract the embedding using InceptionResNet
    4. Normalize to unit vector for consistent distance calculations
    """

    def __init__(
        self,
        model_loader: Optional[FaceModelLoader] = None,
        validator: Optional[ImageValidator] = None,
        min_detection_prob: float = 0.95,
        descriptor_dim: int = 512
    ):
        self.models = model_loader or FaceModelLoader()
        self.validator = validator or ImageValidator()
        self.device = self.models.device
        self.min_detection_prob = min_detection_prob
        self.descriptor_dim = descriptor_dim

        self._stats = {
            'total_extractions': 0,
            'successful_extractions': 0,
            'failed_no_face': 0,
            'failed_low_confidence': 0,
            'failed_preprocessing': 0,
        }

        log.info(
            f"FaceEncodingExtractor initialized: "
            f"min_prob={min_detection_prob:.2f}, dim={descriptor_dim}, device={self.device}"
        )

    def extract(self, frame) -> Optional[np.ndarray]:
        """
        Returns a normalized descriptor, or None when no usable face is found.
        A missing face is a normal outcome and never raises.
        """
        t0 = time.time()
        self._stats['total_extractions'] += 1

        try:
            frame = self.validator.preprocess(frame)
        except ValueError as e:
            log.debug(f"Preprocessing failed: {e}")
            self._stats['failed_preprocessing'] += 1
            return None

        faces, probs = self.models.mtcnn(Image.fromarray(frame), return_prob=True)

        if faces is None or not isinstance(faces, torch.Tensor):
            log.debug("No faces detected in frame")
            self._stats['failed_no_face'] += 1
            return None

        if faces.ndim == 3:
            faces = faces.unsqueeze(0)

        idx = 0
        if probs is not None:
            probs_array = np.array(probs, dtype=np.float32).reshape(-1)
            if probs_array.size == faces.shape[0]:
                idx = int(np.argmax(probs_array))
                if probs_array[idx] < self.min_detection_prob:
                    log.debug(
                        f"Face detection confidence too low: {probs_array[idx]:.3f} "
                        f"< {self.min_detection_prob:.3f}"
                    )
                    self._stats['failed_low_confidence'] += 1
                    return None

        face = faces[idx].unsqueeze(0).to(self.device)
        with torch.no_grad():
            embedding = F.normalize(self.models.resnet(face), p=2, dim=1)

        encoding = embedding.cpu().numpy().flatten()
        if not self.validate_encoding(encoding):
            log.warning("Extracted encoding failed validation")
            return None

        self._stats['successful_extractions'] += 1
        log.debug(f"✓ Encoding extracted: {(time.time() - t0) * 1000:.1f}ms")
        return encoding

    def validate_encoding(self, encoding: np.ndarray) -> bool:
        if encoding is None or len(encoding) != self.descriptor_dim:
            log.warning(f"Invalid encoding size (expected {self.descriptor_dim})")
            return False
        if not np.all(np.isfinite(encoding)):
            log.warning("Encoding contains NaN or Inf values")
            return False
        norm = np.linalg.norm(encoding)
        if norm < 0.5 or norm > 1.5:
            log.warning(f"Encoding norm out of range: {norm:.3f} (expected ~1.0)")
            return False
        return True

    def get_statistics(self) -> dict:
        return dict(self._stats)

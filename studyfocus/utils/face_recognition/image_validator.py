import cv2
import numpy as np


class ImageValidator:
    """Normalizes camera frames to uint8 RGB (H, W, 3) before detection."""

    def __init__(self, input_color: str = "RGB"):
        self.input_color = input_color.upper()
        if self.input_color not in ("RGB", "BGR"):
            raise ValueError(f"Unsupported input color order: {input_color}")

    def preprocess(self, frame: np.ndarray) -> np.ndarray:
        if not isinstance(frame, np.ndarray):
            raise ValueError("Frame must be np.ndarray")
        if frame.ndim != 3 or frame.shape[2] != 3:
            raise ValueError(f"Invalid image shape: {frame.shape}")
        if frame.dtype != np.uint8:
            frame = np.clip(frame, 0, 255).astype(np.uint8)
        if self.input_color == "BGR":
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return frame

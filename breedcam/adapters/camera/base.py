from abc import ABC, abstractmethod

import cv2
import numpy as np

from breedcam.orchestrator.contracts import Frame

class CameraAdapter(ABC):
    @abstractmethod
    def capture(self) -> Frame:
        """Capture one mirrored frame. Raises CameraError on failure."""
        ...

    def release(self):
        pass


def mirror(image: np.ndarray, size: tuple[int, int]) -> np.ndarray:
    """Resize to (width, height) and flip horizontally, like looking in a mirror."""
    w, h = size
    if image.shape[1] != w or image.shape[0] != h:
        image = cv2.resize(image, (w, h), interpolation=cv2.INTER_AREA)
    return cv2.flip(image, 1)

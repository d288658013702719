"""Mock camera: cycles through sample images from samples/, or a synthetic test pattern."""
import itertools
import time
from pathlib import Path

import cv2
import numpy as np

from breedcam.adapters.camera.base import CameraAdapter, mirror
from breedcam.orchestrator.contracts import Frame

SAMPLES_DIR = Path(__file__).parent / "samples"

class MockCamera(CameraAdapter):
    def __init__(self, status_store, size: tuple[int, int] = (320, 240), image: np.ndarray | None = None):
        self.status = status_store
        self._size = size
        self._seq = itertools.count(1)
        if image is not None:
            self._images = [image]
        else:
            self._images = [cv2.imread(str(p)) for p in sorted(SAMPLES_DIR.glob("*.jpg"))]
            self._images = [img for img in self._images if img is not None]
        if not self._images:
            self.status.log("mock_camera: no sample images found, using test pattern")
            self._images = [self._test_pattern()]
        self._cycle = itertools.cycle(self._images)

    def _test_pattern(self) -> np.ndarray:
        w, h = self._size
        ramp = np.linspace(0, 255, w, dtype=np.uint8)
        img = np.zeros((h, w, 3), dtype=np.uint8)
        img[:, :, 0] = ramp
        img[:, :, 2] = ramp[::-1]
        return img

    def capture(self) -> Frame:
        return Frame(image=mirror(next(self._cycle), self._size), seq=next(self._seq), captured_at=time.time())

import asyncio

import numpy as np
import pytest

from breedcam.adapters.camera.base import CameraAdapter, mirror
from breedcam.adapters.display.regions import RegionBoard
from breedcam.adapters.vision.base import VisionAdapter
from breedcam.orchestrator.contracts import Frame, RankedLabel
from breedcam.orchestrator.errors import ClassificationError
from breedcam.services.status_store import StatusStore

BREEDS = ["border collie", "dalmatier", "pitbull", "shiba inu", "yorkshire terrier"]


def ranked(*pairs) -> list[RankedLabel]:
    return [RankedLabel(label=l, confidence=c) for l, c in pairs]


def error_lines(status: StatusStore) -> list[str]:
    return [l for l in status.logs if l.startswith("ERROR")]


def warning_lines(status: StatusStore) -> list[str]:
    return [l for l in status.logs if l.startswith("WARNING")]


class StubCamera(CameraAdapter):
    """Returns the same image every time; records how many frames were taken."""

    def __init__(self, image=None, on_capture=None):
        self.image = image if image is not None else np.full((240, 320, 3), 80, dtype=np.uint8)
        self.captures = 0
        self.released = False
        self._on_capture = on_capture

    def capture(self) -> Frame:
        if self._on_capture is not None:
            self._on_capture()
        self.captures += 1
        return Frame(image=mirror(self.image, (320, 240)), seq=self.captures, captured_at=0.0)

    def release(self):
        self.released = True


class TrackingVision(VisionAdapter):
    """Returns `result` for `limit` calls, then fails; tracks concurrent calls."""

    def __init__(self, result, limit: int = 5, delay: float = 0.001):
        self.labels = [r.label for r in result]
        self.result = result
        self.limit = limit
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0

    async def classify(self, image):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            self.calls += 1
            if self.calls > self.limit:
                raise ClassificationError("tracking: limit reached")
            return list(self.result)
        finally:
            self.active -= 1


@pytest.fixture
def status():
    return StatusStore()


@pytest.fixture
def regions(status):
    return RegionBoard(status, names=BREEDS)

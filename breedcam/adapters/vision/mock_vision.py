import asyncio
import random
from breedcam.adapters.vision.base import VisionAdapter, rank
from breedcam.orchestrator.contracts import RankedLabel
from breedcam.orchestrator.errors import ClassificationError

class MockVision(VisionAdapter):
    """Random results over `labels`, or a fixed script of results.

    A script entry is either a list of RankedLabel or an Exception, which is raised.
    The last entry repeats once the script is exhausted.
    """

    def __init__(self, status_store, labels: list[str], script: list | None = None, delay: float = 0.05):
        self.status = status_store
        self.labels = list(labels)
        self._script = list(script or [])
        self._delay = delay
        self.calls = 0

    async def classify(self, image) -> list[RankedLabel]:
        self.calls += 1
        await asyncio.sleep(self._delay)
        if self._script:
            step = self._script.pop(0) if len(self._script) > 1 else self._script[0]
            if isinstance(step, Exception):
                raise step
            return list(step)
        if not self.labels:
            raise ClassificationError("mock_vision: no labels")
        scores = [random.random() for _ in self.labels]
        total = sum(scores)
        return rank(self.labels, [s / total for s in scores])

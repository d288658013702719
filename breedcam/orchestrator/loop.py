import asyncio
from typing import Optional

from breedcam.orchestrator.contracts import Prediction
from breedcam.orchestrator import errors


class ClassificationLoop:
    """Capture -> classify -> publish, one request in flight at a time.

    A new frame is captured only after the previous result arrived, so throughput
    follows inference latency rather than the camera frame rate. Any capture or
    classification error stops the loop; the last prediction and regions are kept.
    """

    def __init__(self, camera, vision, regions, status_store, threshold: float = 0.75,
                 inference_timeout: Optional[float] = 10.0):
        self.camera = camera
        self.vision = vision
        self.regions = regions
        self.status = status_store
        self.threshold = threshold
        self.inference_timeout = inference_timeout
        self.inflight = 0
        self._request: Optional[asyncio.Future] = None
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        """True while a classification request is outstanding, even one the loop gave up on."""
        return self._request is not None and not self._request.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stop = asyncio.Event()
        self.status.set_state("idle")
        self._task = asyncio.create_task(self.run(), name="classification-loop")
        return self._task

    async def stop(self):
        self._stop.set()
        if self.running:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self.status.set_state("stopped")

    async def run(self):
        self.status.last_error = None
        self.status.set_state("idle")
        self.status.log(f"loop: start threshold={self.threshold} timeout={self.inference_timeout}")
        try:
            while not self._stop.is_set():
                if not await self.step():
                    return
            self.status.log("loop: stopped")
        except asyncio.CancelledError:
            self.status.log("loop: cancelled")
            raise
        finally:
            self.status.set_state("stopped")

    async def step(self) -> bool:
        """Run one cycle. Returns False when the loop must stop."""
        try:
            if self.busy:
                # a timed-out or abandoned request is still running; never stack a second one
                self.status.log("loop: waiting for previous request to finish")
                await asyncio.wait({self._request})

            frame = await asyncio.to_thread(self.camera.capture)
            frame.image.setflags(write=False)
            self.status.frame = frame

            self.status.set_state("awaiting_result")
            self._request = asyncio.ensure_future(self.vision.classify(frame.image))
            self.inflight += 1
            self._request.add_done_callback(self._request_done)
            # shield: a timeout or stop detaches the loop, the request runs to completion
            results = await asyncio.wait_for(asyncio.shield(self._request), self.inference_timeout)
            if not results:
                raise errors.ClassificationError("classifier returned no results")
        except asyncio.TimeoutError:
            self._fail(errors.ERR_TIMEOUT, f"inference timed out after {self.inference_timeout}s")
            return False
        except errors.BreedcamError as e:
            self._fail(e.code, str(e))
            return False
        except Exception as e:
            self._fail(errors.ERR_UNKNOWN, f"{type(e).__name__}: {e}")
            return False

        top = max(results, key=lambda r: r.confidence)
        if top.label != self.status.prediction.label:
            self.status.log(f"loop: label={top.label} conf={top.confidence:.2f}")
        self.status.prediction = Prediction(label=top.label, confidence=top.confidence)
        self.status.set_state("idle")

        self.regions.note_prediction(top.label)
        if top.confidence > self.threshold:
            self.regions.show(top.label)
        return True

    def _request_done(self, fut: asyncio.Future):
        self.inflight -= 1
        if not fut.cancelled():
            fut.exception()  # consumed here when the loop already gave up on it

    def _fail(self, code: str, msg: str):
        self.status.last_error = f"{code}: {msg}"
        self.status.log(f"loop: error {code} {msg}", level="error")

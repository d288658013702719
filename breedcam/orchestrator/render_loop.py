import asyncio
from typing import Optional


class RenderLoop:
    """Redraws the display surface at a fixed rate from whatever the store holds."""

    def __init__(self, status_store, renderer, fps: float = 30.0):
        self.status = status_store
        self.renderer = renderer
        self.fps = fps
        self._last = None
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def render_once(self) -> bool:
        frame = self.status.frame
        label = self.status.prediction.label
        key = (frame.seq if frame is not None else None, label)
        if key == self._last and self.status.canvas_jpeg is not None:
            return False
        jpeg = self.renderer.encode(self.renderer.compose(frame, label))
        if jpeg is None:
            return False
        self.status.canvas_jpeg = jpeg
        self._last = key
        return True

    async def run(self):
        period = 1.0 / self.fps
        while not self._stop.is_set():
            self.render_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=period)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="render-loop")
        return self._task

    async def stop(self):
        self._stop.set()
        if self._task is not None:
            await self._task

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import StreamingResponse

from breedcam.services.config import Settings, load_settings
from breedcam.services.models import (
    PredictionOut, StatusResponse, RegionsResponse, ControlResponse, HealthResponse,
)
from breedcam.services.status_store import StatusStore
from breedcam.adapters.display.regions import RegionBoard
from breedcam.adapters.display.renderer import Renderer
from breedcam.orchestrator.errors import ModelLoadError
from breedcam.orchestrator.loop import ClassificationLoop
from breedcam.orchestrator.render_loop import RenderLoop


def make_camera(settings: Settings, status: StatusStore):
    # Camera adapter: CAMERA_ADAPTER env var, cv2 | mock
    if settings.camera_adapter == "cv2":
        from breedcam.adapters.camera.cv2_camera import CV2Camera
        return CV2Camera(status, index=settings.camera_index, size=settings.frame_size)
    from breedcam.adapters.camera.mock_camera import MockCamera
    return MockCamera(status, size=settings.frame_size)


async def load_vision(settings: Settings, status: StatusStore):
    # Vision adapter: VISION_ADAPTER env var, onnx | mock
    if settings.vision_adapter == "onnx":
        from breedcam.adapters.vision.onnx_vision import OnnxVision
        return await OnnxVision.load(status, settings.model_url)
    from breedcam.adapters.vision.mock_vision import MockVision
    return MockVision(status, labels=settings.regions + [settings.sentinel_label])


async def _mjpeg(status: StatusStore, fps: float):
    last = None
    while True:
        jpeg = status.canvas_jpeg
        if jpeg is not None and jpeg is not last:
            last = jpeg
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpeg + b"\r\n"
        await asyncio.sleep(1.0 / fps)


def create_app(settings: Settings | None = None, status: StatusStore | None = None,
               camera=None, vision_loader=load_vision) -> FastAPI:
    settings = settings or load_settings()
    status = status or StatusStore()
    camera = camera or make_camera(settings, status)
    regions = RegionBoard(status, names=settings.regions, sentinel=settings.sentinel_label,
                          unknown_policy=settings.unknown_label_policy)
    render = RenderLoop(status, Renderer(settings.canvas_size, settings.jpeg_quality), fps=settings.render_fps)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        status.log(f"camera adapter: {type(camera).__name__}")
        try:
            vision = await vision_loader(settings, status)
        except ModelLoadError as e:
            status.log(f"startup: model load failed: {e}", level="error")
            raise
        status.log(f"vision adapter: {type(vision).__name__}")

        unmapped = regions.unknown_labels(vision.labels)
        if unmapped:
            status.log(f"startup: model labels without a region: {unmapped}", level="warning")

        loop = ClassificationLoop(camera, vision, regions, status,
                                  threshold=settings.confidence_threshold,
                                  inference_timeout=settings.inference_timeout)
        app.state.vision = vision
        app.state.loop = loop
        loop.start()
        render.start()
        try:
            yield
        finally:
            await loop.stop()
            await render.stop()
            await asyncio.to_thread(camera.release)
            status.log("shutdown: done")

    app = FastAPI(title="breedcam", lifespan=lifespan)
    app.state.settings = settings
    app.state.status = status
    app.state.regions = regions

    @app.get("/status", response_model=StatusResponse)
    def get_status(request: Request):
        loop = request.app.state.loop
        pred = status.prediction
        return StatusResponse(
            loop_state=status.loop_state,
            running=loop.running,
            prediction=PredictionOut(label=pred.label, confidence=pred.confidence),
            threshold=settings.confidence_threshold,
            regions=regions.snapshot(),
            visible=regions.visible,
            frame_seq=status.frame.seq if status.frame is not None else None,
            last_error=status.last_error,
            logs=status.logs,
        )

    @app.get("/regions", response_model=RegionsResponse)
    def get_regions():
        return RegionsResponse(regions=regions.snapshot(), visible=regions.visible)

    @app.get("/frame.jpg")
    def frame_jpg():
        jpeg = status.canvas_jpeg
        if jpeg is None:
            return Response(status_code=204)
        return Response(content=jpeg, media_type="image/jpeg")

    @app.get("/stream.mjpg")
    def stream_mjpg():
        return StreamingResponse(_mjpeg(status, settings.render_fps),
                                 media_type="multipart/x-mixed-replace; boundary=frame")

    @app.post("/stop", response_model=ControlResponse)
    async def stop(request: Request):
        status.log("STOP")
        await request.app.state.loop.stop()
        return ControlResponse(ok=True, loop_state=status.loop_state)

    @app.post("/start", response_model=ControlResponse)
    async def start(request: Request):
        loop = request.app.state.loop
        if loop.running:
            return ControlResponse(ok=False, loop_state=status.loop_state, error="running")
        status.log("START")
        loop.start()
        return ControlResponse(ok=True, loop_state=status.loop_state)

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        vision = request.app.state.vision
        return HealthResponse(
            ok=request.app.state.loop.running,
            vision_adapter=type(vision).__name__,
            camera_adapter=type(camera).__name__,
            labels=vision.labels,
            unmapped_labels=regions.unknown_labels(vision.labels),
            loop_state=status.loop_state,
        )

    return app

"""
Runtime settings, read from the environment after loading breedcam/.env.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from breedcam.adapters.display.regions import DEFAULT_REGIONS, SENTINEL

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


@dataclass
class Settings:
    vision_adapter: str = "onnx"          # onnx | mock
    model_url: str = ""
    camera_adapter: str = "cv2"           # cv2 | mock
    camera_index: int = 0
    frame_size: tuple = (320, 240)
    canvas_size: tuple = (320, 260)
    regions: list = field(default_factory=lambda: list(DEFAULT_REGIONS))
    sentinel_label: str = SENTINEL
    confidence_threshold: float = 0.75
    unknown_label_policy: str = "ignore"  # ignore | hide
    inference_timeout: float = 10.0
    render_fps: float = 30.0
    jpeg_quality: int = 85

    def __post_init__(self):
        if self.vision_adapter not in ("onnx", "mock"):
            raise ValueError(f"VISION_ADAPTER must be onnx or mock, got {self.vision_adapter!r}")
        if self.camera_adapter not in ("cv2", "mock"):
            raise ValueError(f"CAMERA_ADAPTER must be cv2 or mock, got {self.camera_adapter!r}")
        if self.unknown_label_policy not in ("ignore", "hide"):
            raise ValueError(f"UNKNOWN_LABEL_POLICY must be ignore or hide, got {self.unknown_label_policy!r}")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(f"CONFIDENCE_THRESHOLD must be in [0, 1], got {self.confidence_threshold}")
        if self.inference_timeout <= 0 or self.render_fps <= 0:
            raise ValueError("INFERENCE_TIMEOUT_S and RENDER_FPS must be positive")


def load_settings(env_file: Path | None = ENV_FILE) -> Settings:
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    env = os.getenv
    return Settings(
        vision_adapter=env("VISION_ADAPTER", "onnx").lower(),
        model_url=env("MODEL_URL", ""),
        camera_adapter=env("CAMERA_ADAPTER", "cv2").lower(),
        camera_index=int(env("CAMERA_INDEX", "0")),
        frame_size=(int(env("FRAME_WIDTH", "320")), int(env("FRAME_HEIGHT", "240"))),
        canvas_size=(int(env("CANVAS_WIDTH", "320")), int(env("CANVAS_HEIGHT", "260"))),
        regions=[r.strip() for r in env("REGIONS", ",".join(DEFAULT_REGIONS)).split(",") if r.strip()],
        sentinel_label=env("SENTINEL_LABEL", SENTINEL),
        confidence_threshold=float(env("CONFIDENCE_THRESHOLD", "0.75")),
        unknown_label_policy=env("UNKNOWN_LABEL_POLICY", "ignore").lower(),
        inference_timeout=float(env("INFERENCE_TIMEOUT_S", "10")),
        render_fps=float(env("RENDER_FPS", "30")),
        jpeg_quality=int(env("JPEG_QUALITY", "85")),
    )

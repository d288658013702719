"""
Classify still images with the configured model, without camera or server.

Usage:
  MODEL_URL=https://example.org/models/dogs/ python breedcam/scripts/classify_images.py a.jpg b.jpg

Useful to check a freshly exported model and its labels against the region list.
"""
import asyncio
import sys
from pathlib import Path

import cv2

ROOT = Path(__file__).parents[2]
sys.path.insert(0, str(ROOT))

from breedcam.adapters.camera.base import mirror
from breedcam.adapters.display.regions import RegionBoard
from breedcam.adapters.vision.onnx_vision import OnnxVision
from breedcam.orchestrator.errors import BreedcamError
from breedcam.services.config import load_settings
from breedcam.services.status_store import StatusStore


async def main(paths: list[str]) -> int:
    settings = load_settings()
    status = StatusStore()
    try:
        vision = await OnnxVision.load(status, settings.model_url)
    except BreedcamError as e:
        print(f"[ERROR] {e}")
        return 1

    regions = RegionBoard(status, names=settings.regions, sentinel=settings.sentinel_label)
    unmapped = regions.unknown_labels(vision.labels)
    if unmapped:
        print(f"[WARN] labels without a region: {unmapped}")

    for p in paths:
        img = cv2.imread(p)
        if img is None:
            print(f"  ❌  {p}: cannot read image")
            continue
        ranked = await vision.classify(mirror(img, settings.frame_size))
        top = ranked[0]
        shown = "shown" if top.confidence > settings.confidence_threshold else "below threshold"
        print(f"  {p}: {top.label} ({top.confidence:.2f}, {shown})")
        for r in ranked[1:]:
            print(f"      {r.label} ({r.confidence:.2f})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1:])))

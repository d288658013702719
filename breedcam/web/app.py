from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from pathlib import Path

import uvicorn

from breedcam.services.api import create_app

root = Path(__file__).resolve().parent


def create_web_app(**kwargs):
    app = create_app(**kwargs)

    @app.get("/", response_class=HTMLResponse)
    def index():
        return (root / "templates" / "index.html").read_text(encoding="utf-8")

    app.mount("/static", StaticFiles(directory=str(root / "static")), name="static")
    return app


def main():
    uvicorn.run("breedcam.web.app:create_web_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()

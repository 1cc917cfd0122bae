"""HTML pages: landing, dashboard and chat."""

from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

STATIC_DIR = Path(__file__).resolve().parents[2] / "static"

router = APIRouter(tags=["pages"], include_in_schema=False)


def page(name: str) -> FileResponse:
    """Serve one of the bundled HTML pages."""
    return FileResponse(STATIC_DIR / name, media_type="text/html")


@router.get("/")
async def index() -> FileResponse:
    """Landing page."""
    return page("index.html")


@router.get("/dashboard")
async def dashboard() -> FileResponse:
    """Dashboard; the middleware redirects anonymous visitors to /login."""
    return page("dashboard.html")


@router.get("/chat")
async def chat() -> FileResponse:
    """Chat and voice room; session required."""
    return page("chat.html")

# src/whereami/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, mounts static assets, and serves the page shell.
Session, map and geo endpoints live in `whereami.api.routes`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from whereami import __version__
from whereami.config.settings import get_settings
from whereami.core.logging import configure_logging

from .routes import _registry, open_session, router

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Pending acquisitions belong to this event loop; drop them with it.
    _registry().clear()


app = FastAPI(title="WhereAmI", version=__version__, lifespan=lifespan)
app.include_router(router)

BASE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = BASE_DIR / "web" / "templates"
STATIC_DIR = BASE_DIR / "web" / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    """Open a page session and serve the page shell."""
    session = open_session(request)
    map_settings = get_settings().map
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": get_settings().app.name,
            "session_id": session.id,
            "version": session.scene.version,
            "info_button_label": map_settings.info_button_label,
            "info_text": map_settings.info_text,
        },
    )

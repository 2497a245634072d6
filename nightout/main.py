import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
import uvicorn

from .auth import RedirectRequired
from .config import settings
from .routers import admin_router, auth_router, browse_router, submit_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("nightout")

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    logger.info(f"Nightout starting up against backend {settings.SUPABASE_URL}...")
    yield
    logger.info("Nightout shutting down...")


app = FastAPI(
    title="Nightout",
    description="A community directory of hotels with moderated submissions.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.exception_handler(RedirectRequired)
async def redirect_required_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(exc.location, status_code=status.HTTP_303_SEE_OTHER)


app.include_router(browse_router.router)
app.include_router(submit_router.router)
app.include_router(admin_router.router)
app.include_router(auth_router.router)


def run():
    """Entry point for the `nightout` console script."""
    uvicorn.run("nightout.main:app", host=settings.HOST, port=settings.PORT)

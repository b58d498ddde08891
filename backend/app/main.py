# backend/app/main.py
import logging
import secrets
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from backend.app.api.auth import router as auth_router
from backend.app.api.sync import router as sync_router
from backend.app.api.tasks import router as tasks_router
from backend.app.dependencies import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

session_secret = settings.session_secret
if not session_secret:
    logger.warning("INBOX_INTEL_SESSION_SECRET is not set; sessions will not survive a restart.")
    session_secret = secrets.token_urlsafe(32)

app = FastAPI(title="inbox-intel API")
app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")
app.include_router(auth_router)
app.include_router(sync_router, prefix="/api")
app.include_router(tasks_router, prefix="/api")

repo_root = Path(__file__).resolve().parents[2]
frontend_dir = repo_root / "frontend"

if frontend_dir.exists():
    app.mount("/static", StaticFiles(directory=frontend_dir), name="static")

    @app.get("/", include_in_schema=False)
    def index() -> FileResponse:
        return FileResponse(frontend_dir / "index.html")

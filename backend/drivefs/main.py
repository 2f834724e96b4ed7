import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drivefs.api.drive import router as drive_router
from drivefs.logging.ndjson import init_logging, log_event

REQUEST_ID_HEADER = "X-Request-Id"


def _load_dotenvs() -> None:
    """
    Load environment variables from:
    - backend/.env
    - repo-root/.env
    """
    backend_dir = Path(__file__).resolve().parents[1]
    repo_root = backend_dir.parent

    load_dotenv(backend_dir / ".env")
    load_dotenv(repo_root / ".env")


def create_app() -> FastAPI:
    _load_dotenvs()
    init_logging()
    app = FastAPI(title="drivefs API", version="0.1.0")

    cors_origins = os.environ.get("DRIVEFS_CORS_ORIGINS", "http://localhost:5173").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.middleware("http")
    async def log_exceptions(request, call_next):  # type: ignore[no-untyped-def]
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        try:
            response = await call_next(request)
        except Exception as e:  # noqa: BLE001
            log_event(
                level="error",
                event="api.exception",
                data={"method": request.method, "path": str(request.url.path), "error": str(e)},
                requestId=request_id,
            )
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    app.include_router(drive_router)
    log_event(level="info", event="app.startup", data={"cors": len(cors_origins)})
    return app


app = create_app()

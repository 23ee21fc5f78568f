import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from resume_reviewer.app.api.routes.auth import router as auth_router
from resume_reviewer.app.api.routes.resume import router as resume_router
from resume_reviewer.app.database.database import get_engine
from resume_reviewer.app.middleware import refresh_session_middleware
from resume_reviewer.app.models import Base

log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        None

    Returns:
        FastAPI: The configured FastAPI application instance.

    Notes:
        1. Initialize the FastAPI application with the title "Resume Reviewer API".
        2. Add the sliding-session middleware.
        3. Add CORS middleware to allow requests from any origin (for development only).
        4. Include the auth and resume routers.
        5. Define a health check endpoint at "/health" that returns a JSON object with status "ok".

    """
    _msg = "Creating FastAPI application"
    log.debug(_msg)

    app = FastAPI(title="Resume Reviewer API")

    app.add_middleware(BaseHTTPMiddleware, dispatch=refresh_session_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # TODO: Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(resume_router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    _msg = "FastAPI application created successfully"
    log.debug(_msg)
    return app


app = create_app()


def initialize_database() -> None:
    """Create the key-value table if it does not exist yet.

    Args:
        None

    Returns:
        None

    Notes:
        1. Production schemas are managed by Alembic migrations; this covers fresh
           local databases such as the default SQLite file.
        2. This function performs database access.

    """
    _msg = "Ensuring database tables exist"
    log.debug(_msg)
    Base.metadata.create_all(bind=get_engine())


def main(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Initialize the database and serve the application with uvicorn."""
    initialize_database()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()

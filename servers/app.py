"""
DJ Planner Backend Server

Reference FastAPI backend for the planning chat, the three planning forms
and document/notes parsing. Routers hold the endpoints, services hold the
business logic.
"""

from fastapi import FastAPI
import uvicorn

from .logging_config import get_logger
from .routers import (
    events_router,
    chat_progress_router,
    forms_router,
    documents_router
)

logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="DJ Planner",
    description="Backend API for the wedding DJ planning chat and forms",
    version="1.0.0"
)

# Include routers
app.include_router(events_router)
app.include_router(chat_progress_router)
app.include_router(forms_router)
app.include_router(documents_router)


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    logger.info("=" * 50)
    logger.info("DJ Planner - planning backend")
    logger.info("=" * 50)
    logger.info(f"Starting server at: http://{host}:{port}")
    logger.info(f"  - Interactive API docs: http://{host}:{port}/docs")
    logger.info("Key Endpoints:")
    logger.info("  - GET  /client/events/{id}/chat-progress     Chat progress")
    logger.info("  - POST /client/events/{id}/chat-progress     Submit answer")
    logger.info("  - GET  /events/{id}/planning                 Planning form")
    logger.info("  - POST /events/{id}/documents/upload         Parse document")
    logger.info("=" * 50)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()

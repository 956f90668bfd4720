"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, HTTPException, Query, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from ..domain.entities import UserProgress
from .config import settings
from .controller import build_controller

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize controller with providers selected from settings
controller = build_controller(settings)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/books")
async def get_books():
    """List the book catalog, flagging books whose text is available."""
    return {"books": controller.list_books()}


@app.get("/progress/{user_id}")
async def get_progress(user_id: str):
    """Get a user's reading progress.

    Users without stored progress get the empty progress.
    """
    try:
        progress = await controller.get_progress(user_id)
        return progress.model_dump(mode="json")
    except Exception as e:
        logger.error(f"Error loading progress for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.put("/progress/{user_id}")
async def put_progress(user_id: str, progress: UserProgress):
    """Upsert a user's reading progress; completed chapters are only ever added."""
    try:
        merged = await controller.update_progress(user_id, progress)
        return merged.model_dump(mode="json")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving progress for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/progress/{user_id}/completed-chapters")
async def get_completed_chapters(user_id: str):
    try:
        chapters = await controller.get_completed_chapters(user_id)
        return {"user_id": user_id, "completed_chapters": chapters}
    except Exception as e:
        logger.error(f"Error loading completed chapters for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/progress/{user_id}/resume")
async def get_resume(user_id: str):
    """Suggest the book and chapter the user should read next."""
    try:
        return await controller.get_resume_selection(user_id)
    except Exception as e:
        logger.error(f"Error suggesting resume point for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.get("/progress/{user_id}/books")
async def get_book_completion(user_id: str):
    try:
        books = await controller.get_book_completion(user_id)
        return {"user_id": user_id, "books": books}
    except Exception as e:
        logger.error(f"Error summarizing book completion for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    user_id: str = Query(..., min_length=1),
    platform: str = Query(""),
    speech_supported: bool = Query(True),
):
    """
    WebSocket endpoint for reading sessions.

    One reading service is created per connection and discarded when the
    connection closes, together with its session state.

    Connection lifecycle:
    1. Client connects with its user_id, platform and whether the browser
       supports speech recognition
    2. Client sends session.start with a book and chapter range
    3. Client sends listening.start and relays recognizer output
       (transcript, recognition.error, recognition.end), echoing the
       generation of the last recognition.command it applied
    4. Server drives the recognizer with recognition.command messages and
       reports verse.matched until session.completed or session.stopped
    """
    await websocket.accept()

    try:
        await controller.handle_websocket_connection(
            websocket=websocket,
            user_id=user_id,
            platform=platform,
            speech_supported=speech_supported,
        )
    except Exception as e:
        logger.error(f"Error handling websocket connection: {e}", exc_info=True)

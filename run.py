"""Run the Bible Reading Coach FastAPI application with uvicorn."""

import uvicorn

from bible_reader.application.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "bible_reader.application.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

# File: resume_engine/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from resume_engine.core.config import settings
from resume_engine.api.api import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.PROJECT_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-Page-Count", "X-Truncated", "X-Size-Profile", "X-Edits-Applied"],
)

app.include_router(api_router)


@app.get("/")
def read_root():
    logger.debug("Health check")
    return {"status": "Resume PDF Engine API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

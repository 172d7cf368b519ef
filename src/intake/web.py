"""
Intake Web - FastAPI application.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intake import __version__
from intake.api import router as intake_router, submit_error_detail
from intake.config import settings
from intake.errors import SubmitError

logger = logging.getLogger(__name__)

app = FastAPI(title="Intake", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Intake starting up...")
    logger.info(f"  Environment: {settings.intake_env}")
    logger.info(f"  Backend: {settings.api_base_url}")


# CORS for the page hosting the steps
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(intake_router, prefix="/api")


@app.exception_handler(SubmitError)
async def submit_error_handler(request: Request, exc: SubmitError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(status_code=422, content=submit_error_detail(exc))


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}

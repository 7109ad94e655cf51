"""
Pointer Bot Detector API

FastAPI application exposing:
- POST /sessions → 201 (open an observation window)
- POST /sessions/{session_id}/samples → 204 (no body)
- GET /sessions/{session_id} → JSON status
- POST /sessions/{session_id}/evaluate → JSON final classification
- DELETE /sessions/{session_id} → 204
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from detector.config import DetectionConfig
from detector.orchestrator import (
    DetectionOrchestrator,
    ReplayAttackError,
    SessionNotFoundError,
)
from detector.remote import RemoteClassifier
from detector.schemas.inputs import SampleBatchPayload, StartSessionPayload
from detector.schemas.outputs import (
    FinalClassification,
    SessionStartedResponse,
    SessionStatusResponse,
)
from detector.session import SessionStateError
from diagnostics.store import get_diagnostic_store


load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# Application State
# =============================================================================

class AppState:
    """Application state container."""
    orchestrator: Optional[DetectionOrchestrator] = None
    remote: Optional[RemoteClassifier] = None


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Pointer Bot Detector API...")
    config = DetectionConfig.from_env()
    state.remote = RemoteClassifier.from_config(config)
    state.orchestrator = DetectionOrchestrator(
        config=config,
        remote=state.remote,
        store=get_diagnostic_store(config.diagnostics_ttl_seconds),
    )
    logger.info("Pointer Bot Detector ready")

    yield

    # Shutdown
    logger.info("Shutting down Pointer Bot Detector API...")
    await state.orchestrator.shutdown()
    await state.remote.close()


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Pointer Bot Detector",
    description="Mouse-movement bot detection with local/remote reconciliation",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware (samples are posted by a browser extension)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _not_found(e: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 without echoing raw input (NaN/Infinity are not valid JSON output)."""
    errors = [
        {key: value for key, value in error.items() if key != "input"}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(errors)},
    )


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": API_VERSION}


# =============================================================================
# Session Endpoints
# =============================================================================

@app.post(
    "/sessions",
    response_model=SessionStartedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(payload: Optional[StartSessionPayload] = None):
    """Open a new observation window."""
    session_id = payload.session_id if payload else None
    try:
        controller = state.orchestrator.start_session(session_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return SessionStartedResponse(
        session_id=controller.session_id,
        state=controller.state,
        window_seconds=controller.config.window_seconds,
    )


@app.post("/sessions/{session_id}/samples", status_code=status.HTTP_204_NO_CONTENT)
async def push_samples(session_id: str, payload: SampleBatchPayload):
    """
    Ingest a batch of pointer samples.

    - Validates batch_id ordering
    - Samples arriving after the window closed are dropped, not rejected
    """
    try:
        state.orchestrator.push_samples(session_id, payload.batch_id, payload.samples)
    except SessionNotFoundError as e:
        raise _not_found(e)
    except ReplayAttackError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Sample ingestion error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error processing samples"
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/sessions/{session_id}", response_model=SessionStatusResponse)
async def get_session(session_id: str):
    """Current lifecycle state and, once DONE, the final classification."""
    try:
        controller = state.orchestrator.get_session(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)

    return SessionStatusResponse(
        session_id=session_id,
        state=controller.state,
        sample_count=controller.sample_count,
        result=controller.result,
    )


@app.post("/sessions/{session_id}/evaluate", response_model=FinalClassification)
async def evaluate(session_id: str):
    """Close the observation window now and return the reconciled verdict."""
    try:
        return await state.orchestrator.evaluate(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)
    except SessionStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Evaluate error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error during evaluation"
        )


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(session_id: str):
    """Cancel a session and clear its diagnostic data."""
    try:
        state.orchestrator.discard(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

# src/expo_poll/main.py
"""Main entry point for the Expo Poll application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from expo_poll.api.v1 import display_router, projects_router, votes_router
from expo_poll.api.v1.dependencies import AdmissionControllerDep, OptionalDeviceIdentityDep
from expo_poll.api.v1.endpoints.votes import TokenQuery, process_vote
from expo_poll.core.errors import VotingError
from expo_poll.core.settings import settings
from expo_poll.schemas.project import VoteResponse

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Expo Poll API",
    description="Rotating QR vote authorization for project expos",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(projects_router, prefix="/api/v1")
app.include_router(display_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")


@app.exception_handler(VotingError)
async def voting_error_handler(request: Request, exc: VotingError) -> JSONResponse:
    """Map a vote-authorization failure to its message and status code."""
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.get("/vote", response_model=VoteResponse, tags=["votes"])
def vote_link_landing(
    controller: AdmissionControllerDep,
    voter: OptionalDeviceIdentityDep,
    token: TokenQuery = None,
) -> VoteResponse:
    """Admit the vote carried by a scanned vote link."""
    return process_vote(token, controller, voter)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("expo_poll.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

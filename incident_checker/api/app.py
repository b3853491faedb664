"""FastAPI application for the Incident Checker service."""

import contextlib
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..infrastructure.dependencies import get_service_container
from .endpoints import articles, health

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize providers on startup and release them on shutdown."""
    container = get_service_container()
    await container.initialize()

    yield  # Application runs here

    await container.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Incident Checker API",
    description="Validation and fact-checking of cyber-attack incident articles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(articles.router)


def serve() -> None:
    """Run the API with uvicorn; HOST and PORT come from the environment."""
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    serve()

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toddler_ai.config import settings
from toddler_ai.logging_config import setup_logging
from toddler_ai.routes import ask
from toddler_ai.services.pipeline import Orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the remote-service clients once; close their HTTP sessions on shutdown."""
    setup_logging(settings.log_level)
    app.state.orchestrator = Orchestrator.from_config(settings.service_config())
    try:
        yield
    finally:
        await app.state.orchestrator.aclose()


app = FastAPI(
    title="toddler-ai",
    description="Spoken answers with pictures for young children's questions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(ask.router)


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse

from toddler_ai.exceptions import PipelineError
from toddler_ai.models import PipelineStage
from toddler_ai.services.pipeline import Orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ask"])

FRIENDLY_ERROR = "Sorry, I couldn't process your question. Please try again!"


def get_orchestrator(request: Request) -> Orchestrator:
    """The Orchestrator built by the app lifespan."""
    return request.app.state.orchestrator


@router.post("/ask")
async def ask(
    audio_file: UploadFile | None = File(None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Answer one recorded question with text, an illustration and speech."""
    audio = await audio_file.read() if audio_file is not None else b""
    filename = (audio_file.filename if audio_file is not None else None) or "recording.wav"
    logger.info("Question received", extra={"audio_filename": filename, "audio_bytes": len(audio)})

    try:
        bundle = await orchestrator.run(audio, filename)
    except PipelineError as e:
        status_code = 400 if e.stage is PipelineStage.RECEIVED else 502
        return JSONResponse(
            status_code=status_code,
            content={"error": FRIENDLY_ERROR, "details": e.reason},
        )

    return bundle.to_dict()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}

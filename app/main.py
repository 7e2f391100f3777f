"""FastAPI application for Voice Lab (packaged)."""

from contextlib import asynccontextmanager
from pathlib import Path
import logging
from typing import Dict, Optional

from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from voicelab.errors import (
    AnalysisError,
    DecodeError,
    InvalidSourceError,
    NotFoundError,
    OperationInProgressError,
    SaveError,
    StorageError,
    SynthesisError,
    VoiceLabError,
)
from voicelab.pipeline.context import AppContext, build_context
from voicelab.pipeline.dto import MixRequest
from voicelab.pipeline.service import VoiceLabService
from voicelab.settings import load_settings
from voicelab.storage import LocalObjectStorage


logger = logging.getLogger("voicelab.app")

APP_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = APP_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

ERROR_STATUS = {
    InvalidSourceError: 400,
    DecodeError: 400,
    NotFoundError: 404,
    OperationInProgressError: 409,
    AnalysisError: 422,
    SynthesisError: 502,
    StorageError: 503,
    SaveError: 503,
}


class YouTubeRequest(BaseModel):
    url: str


class VoiceUpdateRequest(BaseModel):
    tag: Optional[str] = None
    characteristics: Optional[Dict[str, float]] = None
    volume: Optional[float] = None


class MixPayload(BaseModel):
    active: Dict[str, bool] = Field(default_factory=dict)
    master_volume: float = 1.0
    narration_text: Optional[str] = None


class SpeechRequest(BaseModel):
    text: str
    pitch: Optional[float] = None


router = APIRouter()


def _service(request: Request) -> VoiceLabService:
    return request.app.state.service


def _error_response(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "error": type(exc).__name__, "detail": str(exc)},
    )


async def voicelab_error_handler(request: Request, exc: VoiceLabError) -> JSONResponse:
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return _error_response(exc, status_code)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error_response(exc, 400)


@router.get("/", response_class=HTMLResponse)
def home(request: Request):
    """Render the main page."""
    return templates.TemplateResponse(request, "index.html", {"title": "Voice Lab"})


@router.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Voice Lab"}


# -----------------------------
# Audio files
# -----------------------------

@router.post("/api/audio")
def upload_audio(request: Request, file: UploadFile = File(...)):
    """Ingest an uploaded audio file."""
    data = file.file.read()
    audio = _service(request).ingest_upload(file.filename or "upload", data)
    return JSONResponse(content={"status": "ok", "audio": audio.to_dict()}, status_code=201)


@router.post("/api/audio/youtube")
def ingest_youtube(request: Request, payload: YouTubeRequest):
    audio = _service(request).ingest_remote(payload.url)
    return JSONResponse(content={"status": "ok", "audio": audio.to_dict()}, status_code=201)


@router.get("/api/audio/{audio_id}")
def get_audio(request: Request, audio_id: str):
    return JSONResponse(content=_service(request).get_audio(audio_id).to_dict())


@router.delete("/api/audio/{audio_id}")
def delete_audio(request: Request, audio_id: str):
    _service(request).delete_audio(audio_id)
    return JSONResponse(content={"status": "ok"})


# -----------------------------
# Analysis and voices
# -----------------------------

@router.post("/api/audio/{audio_id}/analyze")
def analyze_audio(request: Request, audio_id: str):
    """Segment the audio file; returns stored voices when they exist."""
    voices = _service(request).analyze(audio_id)
    return JSONResponse(content={"status": "ok", "voices": [v.to_dict() for v in voices]})


@router.post("/api/audio/{audio_id}/reanalyze")
def reanalyze_audio(request: Request, audio_id: str):
    voices = _service(request).reanalyze(audio_id)
    return JSONResponse(content={"status": "ok", "voices": [v.to_dict() for v in voices]})


@router.get("/api/audio/{audio_id}/voices")
def list_voices(request: Request, audio_id: str):
    voices = _service(request).list_voices(audio_id)
    return JSONResponse(content={"voices": [v.to_dict() for v in voices]})


@router.delete("/api/audio/{audio_id}/voices")
def clear_voices(request: Request, audio_id: str):
    deleted = _service(request).clear_voices(audio_id)
    return JSONResponse(content={"status": "ok", "deleted": deleted})


@router.put("/api/voices/{voice_id}")
def update_voice(request: Request, voice_id: str, payload: VoiceUpdateRequest):
    voice = _service(request).update_voice(
        voice_id,
        tag=payload.tag,
        characteristics=payload.characteristics,
        volume=payload.volume,
    )
    return JSONResponse(content={"status": "ok", "voice": voice.to_dict()})


@router.delete("/api/voices/{voice_id}")
def delete_voice(request: Request, voice_id: str):
    _service(request).delete_voice(voice_id)
    return JSONResponse(content={"status": "ok"})


@router.get("/api/voices/{voice_id}/preview")
def preview_voice(request: Request, voice_id: str):
    return JSONResponse(content=_service(request).preview(voice_id).to_dict())


# -----------------------------
# Mixing and speech
# -----------------------------

@router.post("/api/audio/{audio_id}/mix")
def mix_audio(request: Request, audio_id: str, payload: MixPayload):
    mix_request = MixRequest(
        audio_id=audio_id,
        active=payload.active,
        master_volume=payload.master_volume,
        narration_text=payload.narration_text,
    )
    result = _service(request).mix(mix_request)
    return JSONResponse(content={"status": "ok", "mix": result.to_dict()})


@router.get("/api/audio/{audio_id}/mixes")
def list_mixes(request: Request, audio_id: str):
    mixes = _service(request).list_mixes(audio_id)
    return JSONResponse(content={"mixes": [m.to_dict() for m in mixes]})


@router.get("/api/mixes/{mix_id}/download")
def download_mix(request: Request, mix_id: str):
    data, result = _service(request).download_mix(mix_id)
    return Response(
        content=data,
        media_type=result.content_type,
        headers={"Content-Disposition": f'attachment; filename="mixed-{result.audio_id}.wav"'},
    )


@router.post("/api/speech")
def synthesize_speech(request: Request, payload: SpeechRequest):
    """Generate standalone narration and store it under speech/."""
    info = _service(request).synthesize_speech(payload.text, pitch=payload.pitch)
    return JSONResponse(content={"status": "ok", **info})


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the application; a context is built from the environment when omitted."""
    if context is None:
        context = build_context(load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        context.close()

    app = FastAPI(
        title="Voice Lab",
        description="Upload audio, tag its voices and export mixes",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.service = VoiceLabService(context)

    app.add_exception_handler(VoiceLabError, voicelab_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.include_router(router)

    storage = context.storage
    base_url = context.settings.storage_base_url
    if isinstance(storage, LocalObjectStorage) and base_url.startswith("/"):
        app.mount(base_url, StaticFiles(directory=str(storage.root)), name="storage")

    return app

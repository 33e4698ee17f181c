"""
Shorts Engine API - FastAPI application for short-form video assembly.

=============================================================================
HOW TO RUN
=============================================================================

Local Development:
    uvicorn api.main:app --reload --host 0.0.0.0 --port 3001

Production:
    uvicorn api.main:app --host 0.0.0.0 --port 3001

Local CLI Test (without server):
    python -m api.main --local-test VIDEO_URL "Text to speak" "Caption one" "Caption two"

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

PUBLIC_BASE_URL         - Base URL of this server (default: http://localhost:3001)
OUTPUT_DIR              - Path to output folder (default: ./output)
FFMPEG_PATH             - ffmpeg executable (default: binary bundled with imageio-ffmpeg)
TTS_PYTHON              - Interpreter that has edge-tts installed (default: current)
YOUTUBE_CLIENT_SECRETS  - OAuth client secrets (default: ./client_secret.json)
YOUTUBE_TOKEN_PATH      - Persisted OAuth token (default: ./tokens.json)
OAUTH_REDIRECT_URI      - Redirect URI registered for the client (default: http://localhost:3000)

=============================================================================
API ENDPOINTS
=============================================================================

GET  /api/health                - Health check
POST /api/tts                   - Synthesize a voiceover
GET  /api/tts/voices            - List voices known to the speech engine
POST /api/assemble              - Assemble video + voiceover + captions
POST /api/youtube/upload        - Upload a finished video (private)
POST /api/youtube/auth-callback - Exchange an OAuth code for a stored token
GET  /output/...                - Generated media

=============================================================================
EXAMPLE REQUESTS
=============================================================================

Voiceover:
    curl -X POST http://localhost:3001/api/tts \\
      -H "Content-Type: application/json" \\
      -d '{"text": "Stay focused. Every single day.", "voice": "en-US-GuyNeural"}'

Assemble:
    curl -X POST http://localhost:3001/api/assemble \\
      -H "Content-Type: application/json" \\
      -d '{
        "videoUrl": "https://videos.pexels.com/video-files/123/clip.mp4",
        "audioFile": "/output/voiceover_1700000000000.mp3",
        "subtitles": ["Stay focused", "Every single day"],
        "title": "Discipline beats motivation #Shorts"
      }'

=============================================================================
"""

import argparse
import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from shorts_engine.config import ConfigError, get_config, init_config
from shorts_engine.engine import ShortsEngine
from shorts_engine.errors import AuthRequired, PublishError, ShortsEngineError
from shorts_engine.storage import OUTPUT_MOUNT

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("shorts_engine.api")


# =============================================================================
# Pydantic Models
# =============================================================================

class ApiModel(BaseModel):
    """Accepts and emits camelCase, like the front end."""
    model_config = ConfigDict(populate_by_name=True)


class SynthesizeRequest(ApiModel):
    """Request body for /api/tts."""
    text: Optional[str] = Field(default=None, description="Text to speak")
    voice: Optional[str] = Field(
        default=None, description="Edge TTS voice id. Defaults to en-US-ChristopherNeural."
    )


class SynthesizeResponse(ApiModel):
    success: bool = True
    audio_url: str = Field(..., alias="audioUrl")
    filename: str


class VoicesResponse(ApiModel):
    voices: List[str]


class AssembleRequest(ApiModel):
    """Request body for /api/assemble."""
    video_url: Optional[str] = Field(default=None, alias="videoUrl", description="Stock video URL")
    audio_file: Optional[str] = Field(
        default=None, alias="audioFile", description="Voiceover path, e.g. /output/voiceover_123.mp3"
    )
    subtitles: List[str] = Field(default_factory=list, description="Caption lines in order")
    title: str = Field(default="", description="Video title")


class AssembleResponse(ApiModel):
    success: bool = True
    video_url: str = Field(..., alias="videoUrl")
    filename: str
    duration: Optional[float] = None


class UploadRequest(ApiModel):
    """Request body for /api/youtube/upload."""
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    title: Optional[str] = None
    description: str = ""
    tags: List[str] = Field(default_factory=list)


class UploadResponse(ApiModel):
    success: bool = True
    video_id: str = Field(..., alias="videoId")
    video_url: str = Field(..., alias="videoUrl")


class AuthCallbackRequest(ApiModel):
    code: Optional[str] = None


class MessageResponse(ApiModel):
    success: bool = True
    message: str


class HealthResponse(ApiModel):
    """Response body for /api/health endpoint."""
    status: str
    message: str = "Server is running"


class ErrorResponse(ApiModel):
    """Error response body."""
    error: str
    detail: str


class AuthRequiredResponse(ErrorResponse):
    auth_url: str = Field(..., alias="authUrl")


# =============================================================================
# Engine
# =============================================================================

_engine: Optional[ShortsEngine] = None


def get_engine() -> ShortsEngine:
    """Get the global ShortsEngine, built from the global config on first use."""
    global _engine
    if _engine is None:
        _engine = ShortsEngine.from_config(get_config())
    return _engine


def init_engine(engine: Optional[ShortsEngine] = None) -> ShortsEngine:
    """Replace the global ShortsEngine (tests pass one wired with fakes)."""
    global _engine
    _engine = engine or ShortsEngine.from_config(get_config())
    return _engine


# =============================================================================
# Lifespan - Startup/Shutdown Events
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration and mount the output directory on startup."""
    engine = get_engine()
    config = engine.config

    # Validate configuration
    try:
        config.validate()
        logger.info("Configuration validated successfully")
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        # Don't fail startup - uploads report the problem when attempted

    config.ensure_output_dir()

    # Mount output directory as static files
    # This makes generated media accessible at /output/...
    # Replace a mount left by an earlier startup (tests restart with a new OUTPUT_DIR)
    app.router.routes[:] = [r for r in app.router.routes if getattr(r, "name", None) != "output"]
    app.mount(
        OUTPUT_MOUNT,
        StaticFiles(directory=str(config.output_dir)),
        name="output"
    )
    logger.info(f"Mounted static files at {OUTPUT_MOUNT} -> {config.output_dir}")

    yield  # Application runs here

    logger.info("Shutting down Shorts Engine API")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Shorts Engine API",
    description="Voiceover, assembly and upload backend for vertical shorts",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(ShortsEngineError)
async def shorts_engine_error_handler(request: Request, exc: ShortsEngineError):
    """Turn a step failure into a structured response."""
    content = {"error": exc.error, "detail": str(exc)}
    if isinstance(exc, AuthRequired):
        content["authUrl"] = exc.auth_url
    elif isinstance(exc, PublishError) and exc.details:
        content["details"] = exc.details

    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.url.path} rejected ({exc.status_code}): {exc}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    """Handle configuration errors."""
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "CONFIG_ERROR",
            "detail": str(exc),
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are caller errors, reported as 400."""
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "detail": "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ),
        }
    )


def unexpected_error(exc: Exception) -> HTTPException:
    logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
    return HTTPException(status_code=500, detail=f"Internal server error: {exc}")


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns {"status": "ok"} when the service is running.
    """
    return HealthResponse(status="ok")


@app.post(
    "/api/tts",
    response_model=SynthesizeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing text or unknown voice"},
        500: {"model": ErrorResponse, "description": "Speech engine failed"},
    },
    tags=["Voice"],
)
async def synthesize_voice(request: SynthesizeRequest):
    """Synthesize the text with Edge TTS into /output/voiceover_<ts>.mp3."""
    engine = get_engine()
    try:
        asset = await run_in_threadpool(engine.synthesizer.synthesize, request.text, request.voice)
    except (ShortsEngineError, ConfigError):
        raise
    except Exception as e:
        raise unexpected_error(e)
    return SynthesizeResponse(audio_url=asset.url, filename=asset.filename)


@app.get(
    "/api/tts/voices",
    response_model=VoicesResponse,
    responses={500: {"model": ErrorResponse, "description": "Speech engine failed"}},
    tags=["Voice"],
)
async def list_voices():
    """Voices installed in the speech engine that /api/tts accepts."""
    engine = get_engine()
    voices = await run_in_threadpool(engine.synthesizer.list_voices)
    return VoicesResponse(voices=voices)


@app.post(
    "/api/assemble",
    response_model=AssembleResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing video or audio"},
        500: {"model": ErrorResponse, "description": "Download or encode failed"},
    },
    tags=["Assembly"],
)
async def assemble_video(request: AssembleRequest):
    """
    Assemble a vertical short.

    Downloads the stock video, burns in the caption lines (if any) and
    muxes the voiceover. The output stops at the shorter of video and audio.
    """
    engine = get_engine()

    logger.info(
        f"Assemble request: captions={len(request.subtitles)}, title={request.title!r}"
    )

    try:
        job = await run_in_threadpool(
            engine.assembler.assemble,
            request.video_url,
            request.audio_file,
            request.subtitles,
            request.title,
        )
    except (ShortsEngineError, ConfigError):
        raise
    except Exception as e:
        raise unexpected_error(e)

    return AssembleResponse(
        video_url=job.output.url,
        filename=job.output.filename,
        duration=job.duration,
    )


@app.post(
    "/api/youtube/upload",
    response_model=UploadResponse,
    responses={
        401: {"model": AuthRequiredResponse, "description": "Authorization required"},
        404: {"model": ErrorResponse, "description": "Video file not found"},
        500: {"model": ErrorResponse, "description": "Upload failed"},
    },
    tags=["YouTube"],
)
async def upload_video(request: UploadRequest):
    """Upload a finished video as a private short."""
    engine = get_engine()
    try:
        result = await run_in_threadpool(
            engine.uploader.upload,
            request.video_url,
            request.title,
            request.description,
            request.tags,
        )
    except (ShortsEngineError, ConfigError):
        raise
    except Exception as e:
        raise unexpected_error(e)
    return UploadResponse(video_id=result.video_id, video_url=result.video_url)


@app.post(
    "/api/youtube/auth-callback",
    response_model=MessageResponse,
    responses={500: {"model": ErrorResponse, "description": "Code exchange failed"}},
    tags=["YouTube"],
)
async def auth_callback(request: AuthCallbackRequest):
    """Exchange the code from the authorization page and store the token."""
    engine = get_engine()
    message = await run_in_threadpool(engine.uploader.complete_authorization, request.code)
    return MessageResponse(message=message)


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_local_test(video_url: str, text: str, subtitles: List[str], voice: Optional[str] = None):
    """Synthesize and assemble once without starting the server."""
    print("=" * 60)
    print("Shorts Engine - Local Test Mode")
    print("=" * 60)

    config = init_config()
    engine = init_engine(ShortsEngine.from_config(config))

    print(f"OUTPUT_DIR: {config.output_dir}")
    print(f"FFMPEG:     {config.ffmpeg_path}")
    print()

    try:
        audio = engine.synthesizer.synthesize(text, voice)
        print(f"Voiceover: {audio.local_path}")

        job = engine.assembler.assemble(video_url, audio.filename, subtitles, title="local test")
    except ShortsEngineError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print()
    print("=" * 60)
    print(f"Generated: {job.output.local_path} ({job.duration}s)")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Shorts Engine API")
    parser.add_argument(
        "--local-test",
        nargs="+",
        metavar=("VIDEO_URL", "TEXT"),
        help="Assemble VIDEO_URL with TEXT spoken and any further args as caption lines",
    )
    parser.add_argument("--voice", default=None, help="Voice for --local-test")
    parser.add_argument("--serve", action="store_true", help="Start the server with uvicorn")
    parser.add_argument("--port", type=int, default=3001)

    args = parser.parse_args()

    if args.local_test:
        if len(args.local_test) < 2:
            parser.error("--local-test needs VIDEO_URL and TEXT")
        video_url, text, *captions = args.local_test
        run_local_test(video_url, text, captions, voice=args.voice)
    elif args.serve:
        import uvicorn

        uvicorn.run("api.main:app", host="0.0.0.0", port=args.port)
    else:
        # Print usage hint
        print("Usage:")
        print("  Start server: uvicorn api.main:app --reload --port 3001")
        print("  Local test:   python -m api.main --local-test VIDEO_URL TEXT [CAPTION ...]")

"""
ASCII Video Service
===================

FastAPI entry point for converting, sharing and playing ASCII videos.

Endpoints:
    GET  /                          - Service information
    GET  /health                    - Liveness probe
    GET  /metrics                   - Store and pipeline counters
    POST /api/stream                - Share frames, returns stream links
    GET  /api/stream?id=<id>        - Stream metadata
    GET  /api/terminal/<id>         - Bash playback script (attachment)
    POST /api/download              - Resolve a video URL via third party
    POST /api/convert               - Convert an uploaded video
    POST /api/convert/url           - Resolve, fetch and convert a video URL
    GET  /stream/<id>               - Browser player page
    WS   /ws/stream/<id>            - Paced frame feed

Components are built by create_app() and stored on ``app.state`` so tests
can construct isolated instances with their own store and pipeline.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from ascii_video.ascii.glyphs import DetailLevel
from ascii_video.config import Settings, settings as default_settings
from ascii_video.errors import (
    ExternalServiceError,
    NotFoundError,
    PipelineError,
    ValidationError,
)
from ascii_video.models import (
    ConversionResult,
    ConvertUrlRequest,
    CreateStreamRequest,
    DownloadRequest,
    FrameSequence,
    StreamCreated,
    StreamMetadata,
)
from ascii_video.pipeline import FramePipeline, OpenCVFrameExtractor
from ascii_video.stream import (
    StreamSessionStore,
    VideoResolver,
    render_terminal_script,
    script_filename,
)
from ascii_video.web import render_player_page


logger = logging.getLogger(__name__)


DOWNLOAD_FAILED_MESSAGE = "Failed to download video. Please try a different URL or service."
CONVERSION_FAILED_MESSAGE = "Failed to process video."


# =============================================================================
# Component Factories
# =============================================================================

def create_pipeline(config: Settings) -> FramePipeline:
    """Build the frame pipeline from settings."""
    return FramePipeline(
        extractor=OpenCVFrameExtractor(),
        frame_rate_cap=config.pipeline.frame_rate_cap,
        max_frames=config.pipeline.max_frames,
        batch_size=config.pipeline.batch_size,
        batch_delay=config.pipeline.batch_delay_seconds,
    )


def create_store(config: Settings) -> StreamSessionStore:
    """Build the stream session store from settings."""
    return StreamSessionStore(
        ttl_seconds=config.store.ttl_seconds,
        reap_interval_seconds=config.store.reap_interval_seconds,
        default_frame_rate=config.store.default_frame_rate,
    )


def create_resolver(config: Settings) -> VideoResolver:
    """Build the third-party resolver client from settings."""
    return VideoResolver(
        api_url=config.resolver.api_url,
        timeout_seconds=config.resolver.timeout_seconds,
        max_download_bytes=config.resolver.max_download_bytes,
    )


# =============================================================================
# Request Helpers
# =============================================================================

def _stream_links(config: Settings, stream_id: str) -> StreamCreated:
    base_url = config.server.public_base_url.rstrip("/")
    return StreamCreated(
        stream_id=stream_id,
        terminal_url=f"curl -s {base_url}/api/terminal/{stream_id}",
        web_url=f"/stream/{stream_id}",
    )


def _parse_conversion_params(
    config: Settings,
    width: Optional[int],
    detail_level: Optional[str],
    max_frames: Optional[int],
) -> tuple:
    if width is None:
        width = config.pipeline.default_width
    if not 1 <= width <= 1000:
        raise ValidationError("Width must be between 1 and 1000 columns.")

    if detail_level is None or detail_level == "":
        level = config.pipeline.default_detail_level
    else:
        try:
            level = DetailLevel(detail_level.lower())
        except ValueError:
            choices = ", ".join(d.value for d in DetailLevel)
            raise ValidationError(f"Detail level must be one of: {choices}.")

    limit = config.pipeline.max_frames
    if max_frames is not None:
        if max_frames < 1:
            raise ValidationError("maxFrames must be at least 1.")
        limit = min(max_frames, limit)

    return width, level, limit


def _conversion_result(
    config: Settings,
    store: StreamSessionStore,
    sequence: FrameSequence,
    share: bool,
) -> dict:
    stream = None
    if share:
        stream_id = store.create(sequence.frames, sequence.frame_rate, sequence.title)
        stream = _stream_links(config, stream_id)

    result = ConversionResult(
        title=sequence.title,
        frame_rate=sequence.frame_rate,
        frame_count=sequence.frame_count,
        width=sequence.width,
        height=sequence.height,
        frames=list(sequence.frames),
        stream=stream,
    )
    return result.model_dump(by_alias=True)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    config: Optional[Settings] = None,
    pipeline: Optional[FramePipeline] = None,
    store: Optional[StreamSessionStore] = None,
    resolver: Optional[VideoResolver] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings (defaults to the global settings)
        pipeline: Frame pipeline (built from settings if None)
        store: Session store (built from settings if None)
        resolver: URL resolver (built from settings if None)

    Returns:
        Configured FastAPI app; the reaper runs for the app's lifespan
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan: start and stop the stream reaper."""
        app.state.startup_time = time.time()
        logger.info(f"Starting {config.service.name} {config.service.version}")
        logger.info(f"Public base URL: {config.server.public_base_url}")

        await app.state.store.start()
        logger.info("All components started")

        yield

        logger.info("Shutting down gracefully...")
        await app.state.store.stop()
        app.state.resolver.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="ASCII Video Stream",
        description="Video to ASCII conversion with short-lived stream sharing",
        version=config.service.version,
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.pipeline = pipeline or create_pipeline(config)
    app.state.store = store or create_store(config)
    app.state.resolver = resolver or create_resolver(config)
    app.state.startup_time = time.time()

    _register_error_handlers(app)
    _register_routes(app)
    return app


# =============================================================================
# Error Handlers
# =============================================================================

def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Malformed {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse({"error": "Malformed request"}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"error": "Stream not found"}, status_code=404)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error(request: Request, exc: ExternalServiceError) -> JSONResponse:
        logger.error(f"External service failure on {request.url.path}: {exc!r} (cause: {exc.__cause__!r})")
        return JSONResponse({"error": DOWNLOAD_FAILED_MESSAGE}, status_code=502)

    @app.exception_handler(PipelineError)
    async def pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
        logger.error(f"Conversion failure on {request.url.path}: {exc!r} (cause: {exc.__cause__!r})")
        return JSONResponse({"error": CONVERSION_FAILED_MESSAGE}, status_code=422)


# =============================================================================
# Routes
# =============================================================================

def _register_routes(app: FastAPI) -> None:
    config: Settings = app.state.settings

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "service": config.service.name,
            "version": config.service.version,
            "status": "running",
            "detail_levels": [d.value for d in DetailLevel],
            "frame_rate_cap": config.pipeline.frame_rate_cap,
            "max_frames": config.pipeline.max_frames,
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe. Always returns 200 while the process runs."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
        })

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Detailed metrics for observability."""
        return JSONResponse({
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
            **app.state.store.metrics(),
            **app.state.pipeline.metrics.to_dict(),
        })

    # -------------------------------------------------------------------------
    # Stream sharing
    # -------------------------------------------------------------------------

    @app.post("/api/stream")
    async def create_stream(body: CreateStreamRequest) -> JSONResponse:
        """Store frames and return the stream's share links."""
        if not body.frames:
            raise ValidationError("Frames are required")

        stream_id = app.state.store.create(body.frames, body.frame_rate, body.title)
        links = _stream_links(config, stream_id)
        return JSONResponse(links.model_dump(by_alias=True))

    @app.get("/api/stream")
    async def stream_metadata(id: Optional[str] = None) -> JSONResponse:
        """Metadata for a shared stream."""
        if not id:
            raise ValidationError("Stream ID is required")

        session = app.state.store.get(id)
        metadata = StreamMetadata.model_validate(session.metadata())
        return JSONResponse(metadata.model_dump(by_alias=True))

    @app.get("/api/terminal/{stream_id}")
    async def terminal_script(stream_id: str):
        """Bash script that plays the stream in a terminal."""
        try:
            session = app.state.store.get(stream_id)
        except NotFoundError:
            return PlainTextResponse("Stream not found", status_code=404)

        return PlainTextResponse(
            render_terminal_script(session),
            headers={
                "Content-Disposition": f'attachment; filename="{script_filename(stream_id)}"',
            },
        )

    # -------------------------------------------------------------------------
    # Third-party resolution
    # -------------------------------------------------------------------------

    @app.post("/api/download")
    async def download(body: DownloadRequest) -> JSONResponse:
        """Resolve a source URL into a direct download link."""
        if not body.url or not body.url.strip():
            raise ValidationError("URL is required")

        info = await asyncio.to_thread(app.state.resolver.resolve, body.url)
        return JSONResponse(info.model_dump(by_alias=True))

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    @app.post("/api/convert")
    async def convert(
        file: UploadFile = File(...),
        width: Optional[int] = Form(None),
        detailLevel: Optional[str] = Form(None),
        frameRate: Optional[float] = Form(None, allow_inf_nan=False),
        maxFrames: Optional[int] = Form(None),
        title: Optional[str] = Form(None),
        share: bool = Form(False),
    ) -> JSONResponse:
        """Convert an uploaded video file into ASCII frames."""
        if not (file.content_type or "").startswith("video/"):
            raise ValidationError("Please select a valid video file.")

        max_bytes = config.upload.max_bytes
        data = await file.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise ValidationError(
                f"File size exceeds {max_bytes // (1024 * 1024)}MB limit."
            )
        if not data:
            raise ValidationError("Uploaded file is empty.")

        target_width, level, limit = _parse_conversion_params(
            config, width, detailLevel, maxFrames
        )

        if not title and file.filename:
            title = file.filename.rsplit(".", 1)[0]

        sequence = await app.state.pipeline.convert(
            data,
            target_width=target_width,
            detected_frame_rate=frameRate,
            detail_level=level,
            max_frames=limit,
            title=title,
        )
        return JSONResponse(
            _conversion_result(config, app.state.store, sequence, share)
        )

    @app.post("/api/convert/url")
    async def convert_url(body: ConvertUrlRequest) -> JSONResponse:
        """Resolve and fetch a video by URL, then convert it."""
        if not body.url or not body.url.strip():
            raise ValidationError("URL is required")

        target_width, level, limit = _parse_conversion_params(
            config, body.width, body.detail_level, body.max_frames
        )

        resolver: VideoResolver = app.state.resolver
        info = await asyncio.to_thread(resolver.resolve, body.url)
        data = await asyncio.to_thread(resolver.fetch, info.download_url)

        sequence = await app.state.pipeline.convert(
            data,
            target_width=target_width,
            detail_level=level,
            max_frames=limit,
            title=info.title or None,
        )
        return JSONResponse(
            _conversion_result(config, app.state.store, sequence, body.share)
        )

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    @app.get("/stream/{stream_id}")
    async def player_page(stream_id: str):
        """Browser player for a shared stream."""
        try:
            session = app.state.store.get(stream_id)
        except NotFoundError:
            return PlainTextResponse("Stream not found", status_code=404)

        return HTMLResponse(render_player_page(session.id, session.title))

    @app.websocket("/ws/stream/{stream_id}")
    async def stream_feed(websocket: WebSocket, stream_id: str, loop: bool = True) -> None:
        """
        Paced frame feed for a shared stream.

        Sends one ``meta`` message, then ``frame`` messages at 1/frame_rate
        intervals. Loops forever unless ``?loop=false``. Closes with code
        4404 when the stream is unknown.
        """
        await websocket.accept()

        try:
            session = app.state.store.get(stream_id)
        except NotFoundError:
            await websocket.close(code=4404, reason="Stream not found")
            return

        logger.info(f"Client connected to stream {stream_id}")
        delay = 1.0 / session.frame_rate

        try:
            await websocket.send_json({"type": "meta", "id": session.id, **session.metadata()})

            while True:
                for index, frame in enumerate(session.frames):
                    await websocket.send_json({"type": "frame", "index": index, "frame": frame})
                    await asyncio.sleep(delay)
                if not loop:
                    break

            await websocket.close()

        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning(f"WebSocket error on stream {stream_id}: {e}")
        finally:
            logger.info(f"Client disconnected from stream {stream_id}")


# =============================================================================
# FastAPI Application
# =============================================================================

app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "ascii_video.main:app",
        host=default_settings.server.host,
        port=default_settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run()

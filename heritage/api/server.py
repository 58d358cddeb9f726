"""
HTTP API consumed by the presentation layer.

Endpoints:
    POST /uploads       multipart image upload -> Upload
    POST /process       {upload_id, target_language} -> Translation
    POST /synthesize    {translation_id} -> audio_url
    GET  /translations  caller history, newest first
    GET  /health        liveness and dependency status

Every endpoint except /health requires a bearer token; the caller id is
passed explicitly to the orchestrator and the store.
"""

import time
import uuid
from typing import Optional

import structlog
from aiohttp import web

from heritage.api.auth import TokenVerifier
from heritage.config import Config
from heritage.db.store import ResultStore
from heritage.errors import HeritageError, ValidationError
from heritage.pipeline.factory import PipelineChains
from heritage.pipeline.orchestrator import PipelineError, PipelineOrchestrator
from heritage.storage.object_store import ObjectStore, scoped_key
from heritage.utils.images import validate_image_bytes
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}

MAX_HISTORY_PAGE = 100

ORCHESTRATOR_KEY = web.AppKey("orchestrator", PipelineOrchestrator)
STORE_KEY = web.AppKey("store", ResultStore)
IMAGE_STORE_KEY = web.AppKey("image_store", ObjectStore)
VERIFIER_KEY = web.AppKey("verifier", TokenVerifier)
SETTINGS_KEY = web.AppKey("settings", Config)
CHAINS_KEY = web.AppKey("chains", PipelineChains)
STARTED_AT_KEY = web.AppKey("started_at", float)


def _error_response(error: HeritageError, stage: Optional[str] = None) -> web.Response:
    body = {
        "success": False,
        "error": str(error),
        "error_kind": error.error_kind,
    }
    if stage:
        body["stage"] = stage
    return web.json_response(body, status=error.status_code)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflight requests and add CORS headers to every response."""
    if request.method == "OPTIONS":
        return web.Response(status=200, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """
    Map pipeline and domain errors to a single JSON failure body.

    Provider-level failures never get here: they are recovered or folded into
    NoProviderAvailable by the chains and only logged.
    """
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(request_id=request_id, path=request.path):
        try:
            return await handler(request)
        except PipelineError as e:
            logger.info("Pipeline request failed", stage=e.stage.value,
                        error_kind=e.error_kind, error=str(e))
            return _error_response(e.cause, stage=e.stage.value)
        except HeritageError as e:
            logger.info("Request failed", error_kind=e.error_kind, error=str(e))
            return _error_response(e)
        except web.HTTPException:
            raise
        except Exception:
            logger.exception("Unhandled error while serving request")
            return web.json_response(
                {"success": False, "error": "Internal server error", "error_kind": "internal_error"},
                status=500,
            )


def _user_id(request: web.Request) -> str:
    """Authenticate the caller; raises Unauthorized."""
    return request.app[VERIFIER_KEY].user_id_from_header(request.headers.get("Authorization"))


async def _json_body(request: web.Request) -> dict:
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _int_param(request: web.Request, name: str, default: int, maximum: int) -> int:
    raw = request.query.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValidationError(f"'{name}' must be an integer") from e
    if value < 0 or value > maximum:
        raise ValidationError(f"'{name}' must be between 0 and {maximum}")
    return value


async def upload_handler(request: web.Request) -> web.Response:
    """Store an uploaded image and create its Upload record."""
    user_id = _user_id(request)
    settings = request.app[SETTINGS_KEY]

    form = await request.post()
    field = form.get("file")
    if field is None or not hasattr(field, "file"):
        raise ValidationError("Multipart field 'file' is required")

    data = field.file.read()
    extension = validate_image_bytes(data, field.filename, settings.max_image_size_bytes)

    key = scoped_key(user_id, extension)
    file_path = await request.app[IMAGE_STORE_KEY].put(data, key, field.content_type or "application/octet-stream")
    upload = await request.app[STORE_KEY].create_upload(user_id, field.filename, file_path)

    logger.info("Upload created", upload_id=str(upload.id), user_id=user_id, size_bytes=len(data))
    return web.json_response({"success": True, "upload": upload.to_dict()}, status=201)


async def process_handler(request: web.Request) -> web.Response:
    """Run OCR and translation for an upload."""
    user_id = _user_id(request)
    body = await _json_body(request)

    upload_id = body.get("upload_id")
    if not upload_id:
        raise ValidationError("Missing required parameter: upload_id")

    translation = await request.app[ORCHESTRATOR_KEY].extract_and_translate(
        user_id, upload_id, body.get("target_language")
    )
    return web.json_response({
        "success": True,
        "translation_id": str(translation.id),
        "translation": translation.to_dict(),
    })


async def synthesize_handler(request: web.Request) -> web.Response:
    """Generate and attach audio for a translation."""
    user_id = _user_id(request)
    body = await _json_body(request)

    translation_id = body.get("translation_id")
    if not translation_id:
        raise ValidationError("Missing required parameter: translation_id")

    translation = await request.app[ORCHESTRATOR_KEY].synthesize_audio(user_id, translation_id)
    return web.json_response({
        "success": True,
        "audio_url": translation.audio_url,
        "translation": translation.to_dict(),
    })


async def history_handler(request: web.Request) -> web.Response:
    """List the caller's translations, newest first."""
    user_id = _user_id(request)
    limit = _int_param(request, "limit", 50, MAX_HISTORY_PAGE)
    offset = _int_param(request, "offset", 0, 1_000_000)

    entries = await request.app[STORE_KEY].list_translations(user_id, limit=limit, offset=offset)
    items = []
    for translation, upload in entries:
        item = translation.to_dict()
        item["upload"] = upload.to_dict() if upload else None
        items.append(item)
    return web.json_response({"success": True, "translations": items})


async def health_handler(request: web.Request) -> web.Response:
    """Handle health check requests."""
    settings = request.app[SETTINGS_KEY]
    status = {
        "status": "ok",
        "uptime_seconds": int(time.time() - request.app[STARTED_AT_KEY]),
        "environment": settings.ENVIRONMENT,
        "providers": request.app[CHAINS_KEY].describe(),
    }

    try:
        from heritage.db.queries import db_ping
        await db_ping()
        status["database"] = "connected"
    except Exception as e:
        status["database"] = "disconnected"
        logger.debug("Health check: database error", error=str(e))

    return web.json_response(status)


def create_app(
    orchestrator: PipelineOrchestrator,
    store: ResultStore,
    image_store: ObjectStore,
    verifier: TokenVerifier,
    settings: Config,
    static_root: Optional[str] = None
) -> web.Application:
    """
    Assemble the aiohttp application.

    Args:
        static_root: Directory served under /storage (local object store);
            omitted when objects are served elsewhere
    """
    app = web.Application(
        middlewares=[cors_middleware, error_middleware],
        client_max_size=settings.max_image_size_bytes + 1024 * 1024,
    )
    app[ORCHESTRATOR_KEY] = orchestrator
    app[STORE_KEY] = store
    app[IMAGE_STORE_KEY] = image_store
    app[VERIFIER_KEY] = verifier
    app[SETTINGS_KEY] = settings
    app[CHAINS_KEY] = orchestrator.chains
    app[STARTED_AT_KEY] = time.time()

    app.router.add_get("/", health_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_post("/uploads", upload_handler)
    app.router.add_post("/process", process_handler)
    app.router.add_post("/synthesize", synthesize_handler)
    app.router.add_get("/translations", history_handler)
    if static_root:
        app.router.add_static("/storage", static_root)

    return app

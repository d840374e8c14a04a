"""HTTP surface of the status image cache."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from config import Settings
from http_cat_cache.dependencies import get_blob_store, get_origin_client
from http_cat_cache.origin_client import (
    OriginClient,
    OriginFetchError,
    create_origin_client,
)
from http_cat_cache.storage import (
    BlobStore,
    EntryNotFoundError,
    LocalBlobStore,
    StorageError,
)
from http_cat_cache.validation import InvalidStatusCodeError, parse_status_code

logger = logging.getLogger(__name__)

IMAGE_MEDIA_TYPE = "image/jpeg"

SUPPORTED_METHODS = ["GET", "PUT", "DELETE"]

INVALID_PATH_MESSAGE = "Bad Request: expected a URL of the form /<status_code>, for example /200"
NOT_FOUND_MESSAGE = "Not Found: image is neither cached nor available from the origin"
NOT_CACHED_MESSAGE = "Not Found: image is not cached"
METHOD_NOT_ALLOWED_MESSAGE = "Method Not Allowed"
INTERNAL_ERROR_MESSAGE = "Internal Server Error"

router = APIRouter()


def _request_target(request: Request) -> tuple[str, str]:
    """Return the undecoded path and the query string of a request."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    return path, request.url.query


def _validated_status_code(request: Request) -> str:
    """Parse the status code from the request target and trace the request.

    Raises:
        InvalidStatusCodeError: If the target is not ``/<3 digits>``.
    """
    path, query = _request_target(request)
    status_code = parse_status_code(path, query)
    logger.info(f"REQUEST {request.method} {path}")
    return status_code


def _method_not_allowed() -> Response:
    return PlainTextResponse(
        METHOD_NOT_ALLOWED_MESSAGE,
        status_code=405,
        headers={"Allow": ", ".join(SUPPORTED_METHODS)},
    )


async def serve_cached_image(
    status_code: str,
    blob_store: BlobStore,
    origin_client: OriginClient,
) -> Response:
    """Serve an image from the cache, populating it from the origin on a miss."""
    try:
        content = await run_in_threadpool(blob_store.read, status_code)
    except EntryNotFoundError:
        logger.info(f"CACHE MISS {status_code}, fetching from origin")
    else:
        logger.info(f"CACHE HIT {status_code}")
        return Response(content=content, media_type=IMAGE_MEDIA_TYPE)

    try:
        content = await origin_client.fetch(status_code)
    except OriginFetchError as e:
        logger.warning(f"FETCH ERROR {status_code}: {e}")
        return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)

    await run_in_threadpool(blob_store.write, status_code, content)
    logger.info(f"CACHE SET {status_code} ({len(content)} bytes)")
    return Response(content=content, media_type=IMAGE_MEDIA_TYPE)


async def write_image(status_code: str, request: Request, blob_store: BlobStore) -> Response:
    """Store the request body as the image for a status code."""
    try:
        content = await request.body()
    except ClientDisconnect:
        logger.warning(f"Client disconnected while uploading {status_code}")
        raise

    await run_in_threadpool(blob_store.write, status_code, content)
    logger.info(f"WRITE {status_code} ({len(content)} bytes)")
    return PlainTextResponse(
        f"Created: image for status code {status_code} saved.",
        status_code=201,
    )


async def delete_image(status_code: str, blob_store: BlobStore) -> Response:
    """Remove the cached image for a status code."""
    try:
        await run_in_threadpool(blob_store.delete, status_code)
    except EntryNotFoundError:
        logger.info(f"DELETE MISS {status_code} not cached")
        return PlainTextResponse(NOT_CACHED_MESSAGE, status_code=404)

    logger.info(f"DELETE {status_code}")
    return PlainTextResponse(f"OK: image for status code {status_code} deleted.")


@router.api_route("/{target:path}", methods=SUPPORTED_METHODS, include_in_schema=False)
async def handle_status_image(
    request: Request,
    blob_store: BlobStore = Depends(get_blob_store),
    origin_client: OriginClient = Depends(get_origin_client),
) -> Response:
    """Validate the request target and dispatch on the HTTP method.

    Other methods never reach this endpoint; the router refuses them and
    ``http_error_handler`` answers with 400 or 405.

    Raises:
        InvalidStatusCodeError: If the target is malformed (answered with 400).
    """
    status_code = _validated_status_code(request)

    if request.method == "GET":
        return await serve_cached_image(status_code, blob_store, origin_client)
    if request.method == "PUT":
        return await write_image(status_code, request, blob_store)
    if request.method == "DELETE":
        return await delete_image(status_code, blob_store)

    return _method_not_allowed()


async def invalid_target_handler(request: Request, exc: InvalidStatusCodeError) -> Response:
    logger.warning(f"Rejected {request.method} {exc.target}")
    return PlainTextResponse(INVALID_PATH_MESSAGE, status_code=400)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Answer router-level 405s with the same rules as routed requests.

    A malformed target gets 400 whatever the method; a valid one gets a
    plain-text 405.
    """
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)

    try:
        _validated_status_code(request)
    except InvalidStatusCodeError as e:
        return await invalid_target_handler(request, e)
    return _method_not_allowed()


async def storage_error_handler(request: Request, exc: StorageError) -> Response:
    """Map local storage failures to a generic 500."""
    logger.error(f"SERVER ERROR {request.method} {request.url.path}: {exc}", exc_info=exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    """Last-resort handler for anything the protocols do not expect."""
    logger.error(f"SERVER ERROR {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)


def create_app(
    settings: Settings,
    blob_store: Optional[BlobStore] = None,
    origin_client: Optional[OriginClient] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Application settings.
        blob_store: Store to use; defaults to a ``LocalBlobStore`` on
            ``settings.cache_dir``, which creates the directory.
        origin_client: Origin client to use; defaults to the HTTP client.

    Raises:
        StorageError: If the cache directory cannot be created or written.
    """
    if blob_store is None:
        blob_store = LocalBlobStore(settings)
    if origin_client is None:
        origin_client = create_origin_client(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Cache directory: {settings.cache_dir}")
        logger.info(f"Origin: {settings.origin_url}")
        logger.info(f"Listening on http://{settings.host}:{settings.port}")

        yield

        logger.info("Shutting down application")

    # No docs or schema routes: every path is part of the cache namespace.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.blob_store = blob_store
    app.state.origin_client = origin_client

    app.add_exception_handler(InvalidStatusCodeError, invalid_target_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)

    return app

"""Stockpile - FastAPI Application.

This module defines the HTTP surface of the inventory service: the route
handlers, the translation of domain errors into JSON error bodies, the
:func:`create_app` factory and the ``main()`` CLI entry point that launches
the uvicorn server.

Architecture
------------
The handlers are a stateless dispatch table over two owned components
stored on ``app.state``:

- **Inventory** - :class:`~stockpile.core.inventory.InventoryStore`, the
  in-memory registry of items.
- **Photos** - :class:`~stockpile.core.blob_store.BlobStore`, photo files
  in the configured cache directory.

Every item leaving the service passes through
:func:`~stockpile.api.views.to_client_view`, so storage references never
appear in a response.  Disk I/O is pushed to the thread pool so a slow
upload never blocks unrelated requests.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/RegisterForm.html``        Registration form page
GET       ``/SearchForm.html``          Search form page
POST      ``/register``                 Register an item (multipart)
GET       ``/inventory``                List all items
GET       ``/inventory/{id}``           Single item
PUT       ``/inventory/{id}``           Update name/description (JSON, form)
DELETE    ``/inventory/{id}``           Delete item and its photo
GET       ``/inventory/{id}/photo``     Photo bytes
PUT       ``/inventory/{id}/photo``     Replace photo (raw request body)
GET       ``/search``                   Look up an item by id (query)
POST      ``/search``                   Look up an item by id (form or JSON)
*         anything else                 405 Method Not Allowed
========  ============================  ====================================

Every GET route also answers HEAD.

Usage
-----
CLI (installed entry point)::

    stockpile --host 127.0.0.1 --port 8000 --cache ./cache

Direct invocation::

    python -m stockpile.api.main -H 127.0.0.1 -p 8000 -c ./cache
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from stockpile import __version__
from stockpile.api.models import ErrorResponse, ItemUpdate, ItemView, MessageResponse, SearchRequest
from stockpile.api.views import to_client_view, with_photo_link
from stockpile.core.blob_store import DEFAULT_MEDIA_TYPE, BlobStore
from stockpile.core.config import LOG_LEVELS, StockpileConfig
from stockpile.core.errors import (
    MethodNotAllowedError,
    NotFoundError,
    StockpileError,
    StorageError,
    ValidationError,
)
from stockpile.core.inventory import InventoryStore

logger = logging.getLogger(__name__)

REGISTER_FORM = "RegisterForm.html"
SEARCH_FORM = "SearchForm.html"

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Read-only routes answer HEAD as well as GET.
_READ_METHODS = ["GET", "HEAD"]

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies - components live on ``app.state``.
# ---------------------------------------------------------------------------


def get_inventory(request: Request) -> InventoryStore:
    """Return the inventory store owned by the running application."""
    return request.app.state.inventory


def get_config(request: Request) -> StockpileConfig:
    """Return the configuration the application was built with."""
    return request.app.state.config


# ---------------------------------------------------------------------------
# Request helpers.
# ---------------------------------------------------------------------------


def _photo_media_type(content_type: str | None) -> str:
    """Pick the media type recorded for an uploaded photo.

    Only ``image/*`` types are trusted; raw uploads from tools like curl
    often arrive labelled as form data.
    """
    if content_type and content_type.lower().startswith("image/"):
        return content_type
    return DEFAULT_MEDIA_TYPE


def _check_photo_size(size: int | None, limit: int) -> None:
    if size is not None and size > limit:
        raise ValidationError(f"Photo exceeds the {limit} byte limit")


async def read_capped(chunks: AsyncIterator[bytes], limit: int) -> bytes:
    """Collect a streamed body, stopping as soon as it grows past ``limit``.

    Raises:
        ValidationError: If more than ``limit`` bytes arrive.  The rest of
            the stream is left unread.
    """
    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
        _check_photo_size(len(buffer), limit)
    return bytes(buffer)


async def _read_fields(request: Request) -> Mapping[str, object]:
    """Return the fields of a urlencoded, multipart or JSON request body.

    An empty body yields no fields.
    """
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    body = await request.body()
    if not body.strip():
        return {}
    try:
        fields = json.loads(body)
    except ValueError:
        raise ValidationError("Request body must be JSON or form data") from None
    if not isinstance(fields, dict):
        raise ValidationError("Request body must be an object")
    return fields


def _parse_fields(model: type[BaseModel], fields: Mapping[str, object]) -> BaseModel:
    try:
        return model.model_validate(fields)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationError(details) from exc


def _serve_form(config: StockpileConfig, filename: str) -> HTMLResponse:
    path = config.templates_dir / filename
    if not path.is_file():
        raise NotFoundError(f"{filename} not found")
    return HTMLResponse(content=path.read_text(encoding="utf-8"))


async def _search(inventory: InventoryStore, item_id: str | None, flag: str | None) -> ItemView:
    if not item_id:
        raise NotFoundError("Not Found")
    view = to_client_view(inventory.get(item_id))
    return with_photo_link(view, flag)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------

router = APIRouter(responses=_ERROR_RESPONSES)


@router.api_route(f"/{REGISTER_FORM}", methods=_READ_METHODS, response_class=HTMLResponse)
async def register_form(config: StockpileConfig = Depends(get_config)) -> HTMLResponse:
    """Serve the registration form page verbatim, or 404 if it is absent."""
    return _serve_form(config, REGISTER_FORM)


@router.api_route(f"/{SEARCH_FORM}", methods=_READ_METHODS, response_class=HTMLResponse)
async def search_form(config: StockpileConfig = Depends(get_config)) -> HTMLResponse:
    """Serve the search form page verbatim, or 404 if it is absent."""
    return _serve_form(config, SEARCH_FORM)


@router.post(
    "/register",
    status_code=201,
    response_model=ItemView,
    response_model_exclude_none=True,
)
async def register_item(
    inventory_name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
    inventory: InventoryStore = Depends(get_inventory),
    config: StockpileConfig = Depends(get_config),
) -> ItemView:
    """Register a new item from a multipart form.

    The photo upload is only copied into the cache directory once the name
    has been validated, so a rejected registration never leaves a file
    behind.  An oversized part is rejected from its spooled size without
    being read back into memory.

    Args:
        inventory_name: Item name (required).
        description: Optional description.
        photo: Optional photo file part.

    Returns:
        The client view of the new item.

    Raises:
        ValidationError: 400 if ``inventory_name`` is missing or the photo
            is too large.
        StorageError: 500 if the photo cannot be saved.
    """
    if not inventory_name:
        raise ValidationError("inventory_name is required")

    data: bytes | None = None
    media_type = None
    if photo is not None:
        _check_photo_size(photo.size, config.max_photo_bytes)
        data = await photo.read()
        _check_photo_size(len(data), config.max_photo_bytes)
        media_type = _photo_media_type(photo.content_type)

    record = await run_in_threadpool(
        inventory.create,
        inventory_name,
        description,
        data,
        media_type=media_type,
    )
    return to_client_view(record)


@router.api_route(
    "/inventory",
    methods=_READ_METHODS,
    response_model=list[ItemView],
    response_model_exclude_none=True,
)
async def list_items(inventory: InventoryStore = Depends(get_inventory)) -> list[ItemView]:
    """Return every item in the inventory."""
    return [to_client_view(record) for record in inventory.list()]


@router.api_route(
    "/inventory/{item_id}",
    methods=_READ_METHODS,
    response_model=ItemView,
    response_model_exclude_none=True,
)
async def get_item(item_id: str, inventory: InventoryStore = Depends(get_inventory)) -> ItemView:
    """Return a single item by id.

    Raises:
        NotFoundError: 404 if the item does not exist.
    """
    return to_client_view(inventory.get(item_id))


@router.put("/inventory/{item_id}", response_model=ItemView, response_model_exclude_none=True)
async def update_item(
    item_id: str,
    request: Request,
    inventory: InventoryStore = Depends(get_inventory),
) -> ItemView:
    """Update an item's name and/or description.

    The body may be a JSON object or form data.  Fields that are missing or
    empty keep their current values.

    Raises:
        NotFoundError: 404 if the item does not exist.
        ValidationError: 400 if the body cannot be parsed.
    """
    payload = _parse_fields(ItemUpdate, await _read_fields(request))
    record = inventory.update(item_id, name=payload.name, description=payload.description)
    return to_client_view(record)


@router.delete("/inventory/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    inventory: InventoryStore = Depends(get_inventory),
) -> MessageResponse:
    """Delete an item and release its photo file.

    Raises:
        NotFoundError: 404 if the item does not exist.
    """
    await run_in_threadpool(inventory.delete, item_id)
    return MessageResponse(message=f"Item {item_id} deleted")


@router.api_route("/inventory/{item_id}/photo", methods=_READ_METHODS, response_class=Response)
async def get_photo(
    item_id: str,
    inventory: InventoryStore = Depends(get_inventory),
) -> Response:
    """Return the raw bytes of an item's photo.

    Raises:
        NotFoundError: 404 if the item does not exist, has no photo, or the
            photo file has gone missing from the cache directory.
    """
    ref = inventory.get_photo_ref(item_id)
    if ref is None:
        raise NotFoundError("Photo Not Found")
    data = await run_in_threadpool(inventory.blobs.read, ref)
    return Response(content=data, media_type=ref.media_type)


@router.put(
    "/inventory/{item_id}/photo",
    response_model=MessageResponse,
    responses={500: {"model": ErrorResponse}},
)
async def replace_photo(
    item_id: str,
    request: Request,
    inventory: InventoryStore = Depends(get_inventory),
    config: StockpileConfig = Depends(get_config),
) -> MessageResponse:
    """Replace an item's photo with the raw request body.

    Any non-empty body is accepted; the bytes are not decoded or checked.
    The body is streamed and reading stops once it passes the size limit.

    Raises:
        NotFoundError: 404 if the item does not exist.
        ValidationError: 400 if the body is empty or too large.
        StorageError: 500 if the new photo cannot be written.
    """
    inventory.get(item_id)
    data = await read_capped(request.stream(), config.max_photo_bytes)
    await run_in_threadpool(
        inventory.set_photo,
        item_id,
        data,
        media_type=_photo_media_type(request.headers.get("content-type")),
    )
    return MessageResponse(message="Photo updated")


@router.api_route(
    "/search",
    methods=_READ_METHODS,
    response_model=ItemView,
    response_model_exclude_none=True,
)
async def search_item(
    id: str | None = None,
    includePhoto: str | None = None,
    inventory: InventoryStore = Depends(get_inventory),
) -> ItemView:
    """Look up an item by id from query parameters.

    With ``includePhoto=on`` the description gains a ``[Photo Link: ...]``
    suffix when the item has a photo.
    """
    return await _search(inventory, id, includePhoto)


@router.post("/search", response_model=ItemView, response_model_exclude_none=True)
async def search_item_form(
    request: Request,
    inventory: InventoryStore = Depends(get_inventory),
) -> ItemView:
    """Look up an item by id from a submitted search form or JSON object."""
    form = _parse_fields(SearchRequest, await _read_fields(request))
    return await _search(inventory, form.id, form.has_photo)


async def method_not_allowed(path: str) -> None:
    """Fallback for every method/path the router does not serve."""
    raise MethodNotAllowedError()


# ---------------------------------------------------------------------------
# Error translation.
# ---------------------------------------------------------------------------


async def _stockpile_error_handler(request: Request, exc: StockpileError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": details or "Invalid request"})


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and shutdown of the service.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    config: StockpileConfig = app.state.config
    logger.info(f"Stockpile {__version__} serving http://{config.host}:{config.port}")
    logger.info(f"Cache: {config.cache_dir}")

    yield

    logger.info(f"Stockpile stopped with {len(app.state.inventory)} item(s) in memory.")


def create_app(config: StockpileConfig, inventory: InventoryStore | None = None) -> FastAPI:
    """Build the FastAPI application.

    Creates the blob root directory unless an ``inventory`` is supplied.

    Args:
        config: Startup configuration.
        inventory: Optional pre-built inventory store (tests pass their own).

    Returns:
        The configured application.

    Raises:
        StorageError: If the cache directory cannot be created.
    """
    if inventory is None:
        inventory = InventoryStore(BlobStore(config.cache_dir))

    app = FastAPI(
        title="Stockpile Inventory API",
        description="Inventory management with photo uploads.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.inventory = inventory

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    app.add_exception_handler(StockpileError, _stockpile_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(router)

    # Registered last so every real route matches first.
    app.add_api_route(
        "/{path:path}",
        method_not_allowed,
        methods=_ALL_METHODS,
        include_in_schema=False,
    )
    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``stockpile`` command."""
    parser = argparse.ArgumentParser(description="Run the Stockpile inventory API")
    parser.add_argument("-H", "--host", required=True, help="server host")
    parser.add_argument("-p", "--port", required=True, type=int, help="server port")
    parser.add_argument("-c", "--cache", required=True, help="cache directory path")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="log level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Launch the uvicorn ASGI server.

    Host, port and cache directory are required flags.  The cache
    directory is created before the server starts; if that fails the
    process exits with status 1.

    This function is registered as the ``stockpile`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = StockpileConfig(
            host=args.host,
            port=args.port,
            cache_dir=args.cache,
            log_level=args.log_level,
        )
    except PydanticValidationError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        app = create_app(config)
    except StorageError as exc:
        logger.error(f"Error creating cache directory: {exc.message}")
        sys.exit(1)

    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()

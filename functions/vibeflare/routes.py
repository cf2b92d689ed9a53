"""
HTTP routes for the CMS.

``router`` carries the mutating API and is mounted under the API prefix.
``site_router`` carries everything else and must be included after it,
since its last route renders any remaining path as a page.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from vibeflare.config import Settings, get_settings
from vibeflare.db import SqlDatabase
from vibeflare.dependencies import (
    get_blob_store,
    get_database,
    get_kv_store,
    get_page_renderer,
)
from vibeflare.errors import QueryError
from vibeflare.instructions import generate_instructions
from vibeflare.kv import KeyValueStore, page_key
from vibeflare.renderer import PageRenderer
from vibeflare.schemas import (
    PageContentRequest,
    PageListResponse,
    PageSavedResponse,
    SqlErrorResponse,
    SqlRequest,
    SqlResponse,
    UploadResponse,
)
from vibeflare.storage import DEFAULT_CONTENT_TYPE, BlobStore

logger = logging.getLogger(__name__)

router = APIRouter()
site_router = APIRouter()

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
HOME_SLUG = "home"


def slug_from_path(path: str) -> str:
    """Map a request path (with or without its leading slash) to a page slug."""
    slug = path[1:] if path.startswith("/") else path
    return slug or HOME_SLUG


def _api_not_found() -> PlainTextResponse:
    return PlainTextResponse("API endpoint not found", status_code=404)


@router.api_route(
    "/page/{slug:path}", methods=["POST", "PUT"], response_model=PageSavedResponse
)
def save_page(
    slug: str,
    payload: PageContentRequest,
    kv: KeyValueStore = Depends(get_kv_store),
    settings: Settings = Depends(get_settings),
):
    """
    Overwrite the stored body of a page. PUT is accepted for the edit-mode script.
    """
    if not slug:
        return _api_not_found()
    kv.put(page_key(slug, settings.page_key_prefix), payload.content)
    logger.info("Saved page %r (%d chars)", slug, len(payload.content))
    return PageSavedResponse(slug=slug)


@router.post(
    "/sql",
    response_model=SqlResponse,
    responses={400: {"model": SqlErrorResponse}},
)
def run_sql(payload: SqlRequest, db: SqlDatabase = Depends(get_database)):
    try:
        result = db.execute(payload.sql)
    except QueryError as exc:
        error = SqlErrorResponse(error=str(exc), sql=exc.sql)
        return JSONResponse(status_code=400, content=error.model_dump())
    return SqlResponse(results=result.results, meta=result.meta)


@router.post("/upload/{key:path}", response_model=UploadResponse)
async def upload_asset(
    key: str,
    request: Request,
    blobs: BlobStore = Depends(get_blob_store),
):
    if not key:
        return _api_not_found()
    body = await request.body()
    content_type = request.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    await run_in_threadpool(blobs.put, key, body, content_type)
    logger.info("Uploaded asset %r (%d bytes, %s)", key, len(body), content_type)
    return UploadResponse(key=key)


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
def api_fallback(path: str):
    return _api_not_found()


@site_router.get("/mcp", response_class=PlainTextResponse)
def mcp_instructions(request: Request, settings: Settings = Depends(get_settings)):
    origin = f"{request.url.scheme}://{request.url.netloc}"
    return PlainTextResponse(generate_instructions(origin, api_prefix=settings.api_prefix))


@site_router.get("/mcp/pages", response_model=PageListResponse)
def list_pages(
    kv: KeyValueStore = Depends(get_kv_store),
    settings: Settings = Depends(get_settings),
):
    prefix = settings.page_key_prefix
    slugs = sorted(key[len(prefix):] for key in kv.list(prefix))
    return PageListResponse(pages=slugs)


@site_router.get("/assets/{key:path}")
def read_asset(
    key: str,
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    asset = blobs.get(key) if key else None
    if asset is None:
        return PlainTextResponse("Asset not found", status_code=404)
    # Content-Type goes in verbatim; media_type would append a charset to text/*.
    return Response(
        content=asset.body,
        headers={
            "Content-Type": asset.content_type,
            "Cache-Control": settings.asset_cache_control,
        },
    )


@site_router.get("/{path:path}", response_class=HTMLResponse)
def render_page(
    path: str,
    request: Request,
    kv: KeyValueStore = Depends(get_kv_store),
    renderer: PageRenderer = Depends(get_page_renderer),
    settings: Settings = Depends(get_settings),
):
    slug = slug_from_path(path)
    edit_mode = "edit" in request.query_params

    content = kv.get(page_key(slug, settings.page_key_prefix))
    custom_css = kv.get(page_key(renderer.config.styles_slug, settings.page_key_prefix))

    page = renderer.render(slug, content, custom_css or "", edit_mode=edit_mode)
    return HTMLResponse(page.html, status_code=page.status_code)

"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from vibeflare.config import get_settings
from vibeflare.db import IN_MEMORY_DATABASE_URL, SqlAlchemyDatabase, SqlDatabase
from vibeflare.kv import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from vibeflare.renderer import PageRenderer, load_renderer_config
from vibeflare.storage import BlobStore, InMemoryBlobStore, S3BlobStore

logger = logging.getLogger(__name__)

_kv_store: KeyValueStore | None = None
_database: SqlDatabase | None = None
_blob_store: BlobStore | None = None
_page_renderer: PageRenderer | None = None


def get_kv_store() -> KeyValueStore:
    """
    Return a singleton key-value store so in-memory pages persist across requests.
    """
    global _kv_store
    if _kv_store:
        return _kv_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.redis_url:
        logger.info("Using in-memory key-value store for pages")
        _kv_store = InMemoryKeyValueStore()
    else:
        _kv_store = RedisKeyValueStore(url=settings.redis_url)
    return _kv_store


def get_database() -> SqlDatabase:
    global _database
    if _database:
        return _database

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory SQLite database")
        _database = SqlAlchemyDatabase(IN_MEMORY_DATABASE_URL)
    else:
        _database = SqlAlchemyDatabase(settings.database_url)
    return _database


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store:
        return _blob_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.s3_bucket:
        logger.info("Using in-memory blob store for assets")
        _blob_store = InMemoryBlobStore()
    else:
        _blob_store = S3BlobStore(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            addressing_style=settings.s3_addressing_style,
        )
    return _blob_store


def get_page_renderer() -> PageRenderer:
    global _page_renderer
    if _page_renderer:
        return _page_renderer
    _page_renderer = PageRenderer(load_renderer_config(get_settings()))
    return _page_renderer

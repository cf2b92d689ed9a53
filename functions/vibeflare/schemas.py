"""
Pydantic schemas for the CMS API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """Request bodies reject fields they do not declare."""

    model_config = ConfigDict(extra="forbid", strict=True)


class PageContentRequest(StrictRequest):
    content: str


class SqlRequest(StrictRequest):
    sql: str


class PageSavedResponse(BaseModel):
    success: bool = True
    slug: str


class SqlResponse(BaseModel):
    success: bool = True
    results: list[dict[str, Any]]
    meta: dict[str, Any]


class SqlErrorResponse(BaseModel):
    success: bool = False
    error: str
    sql: str


class UploadResponse(BaseModel):
    success: bool = True
    key: str


class PageListResponse(BaseModel):
    success: bool = True
    pages: list[str]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str

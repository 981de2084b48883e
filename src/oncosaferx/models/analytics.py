"""Visitor analytics records.

Incoming payloads use the browser tracker's camelCase keys; every model
accepts either the alias or the field name, and metrics serialise back to
camelCase with ``model_dump(by_alias=True)``.
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsEvent(BaseModel):
    """Envelope posted to the ingestion endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    event_type: Literal["pageview", "interaction", "session_end"] = Field(alias="eventType")
    session_id: UUID = Field(alias="sessionId")
    timestamp: datetime
    data: dict[str, Any] = {}


class PageView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = "/"
    title: str = ""
    timestamp: datetime | None = None
    referrer: str | None = None
    time_on_page: int | None = Field(default=None, alias="timeOnPage")


class Interaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "click"  # click, form_submit, search, download, ...
    element: str | None = None
    value: Any = None
    page: str | None = None
    timestamp: datetime | None = None


class SessionRecord(BaseModel):
    """A finished session. ``duration`` is in milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    start_time: datetime | None = Field(default=None, alias="startTime")
    duration: float | None = None
    page_views: list[Any] | None = Field(default=None, alias="pageViews")
    device_type: str | None = Field(default=None, alias="deviceType")
    user_role: str | None = Field(default=None, alias="userRole")
    user_agent: str = Field(default="", alias="userAgent")
    ip_hash: str | None = Field(default=None, alias="ipHash")


class PageCount(BaseModel):
    url: str
    views: int


class RoleCount(BaseModel):
    role: str
    count: int


class DeviceCount(BaseModel):
    type: str
    count: int


class AnalyticsMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_visitors: int = Field(default=0, alias="totalVisitors")
    unique_visitors: int = Field(default=0, alias="uniqueVisitors")
    page_views: int = Field(default=0, alias="pageViews")
    average_session_duration: int = Field(default=0, alias="averageSessionDuration")
    bounce_rate: float = Field(default=0.0, alias="bounceRate")
    top_pages: list[PageCount] = Field(default=[], alias="topPages")
    user_roles: list[RoleCount] = Field(default=[], alias="userRoles")
    device_types: list[DeviceCount] = Field(default=[], alias="deviceTypes")

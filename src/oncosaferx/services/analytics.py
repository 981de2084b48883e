"""
In-memory visitor analytics store.

Every record is anonymised on the way in: client IPs become a salted SHA-256
prefix, user agents lose their parenthetical platform details, identifying
query parameters are dropped from URLs, patient names are redacted from page
titles and form-submit values are never kept.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit

from oncosaferx.constants import (
    DEFAULT_METRICS_RANGE,
    SENSITIVE_QUERY_PARAMS,
    TOP_PAGES_LIMIT,
)
from oncosaferx.models.analytics import (
    AnalyticsEvent,
    AnalyticsMetrics,
    DeviceCount,
    Interaction,
    PageCount,
    PageView,
    RoleCount,
    SessionRecord,
)

logger = logging.getLogger(__name__)

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_WHITESPACE = re.compile(r"\s+")
_PATIENT_TITLE = re.compile(r"Patient:\s*[^-]+", re.IGNORECASE)
_URL_BASE = "https://example.com"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def parse_range(range_: str) -> int:
    """Number of days in a range like ``7d``.

    Raises:
        ValueError: if the range has no leading integer.
    """
    match = re.match(r"\s*(\d+)", range_)
    if not match:
        raise ValueError(f"Invalid metrics range: {range_!r}")
    return int(match.group(1))


@dataclass
class DailyMetrics:
    sessions: int = 0
    page_views: int = 0
    unique_visitors: set[str] = field(default_factory=set)
    devices: Counter = field(default_factory=Counter)
    user_roles: Counter = field(default_factory=Counter)


class AnalyticsStore:
    """Anonymised page views, interactions and sessions, with daily rollups."""

    def __init__(self, salt: str = "", clock: Callable[[], datetime] = _utcnow):
        self.salt = salt
        self._clock = clock
        self.sessions: dict[str, SessionRecord] = {}
        self.page_views: list[PageView] = []
        self.interactions: list[Interaction] = []
        self.daily_metrics: dict[str, DailyMetrics] = {}

    # -- Sanitisation ---------------------------------------------------------

    def hash_ip(self, ip: str) -> str:
        return hashlib.sha256(f"{ip}{self.salt}".encode()).hexdigest()[:16]

    @staticmethod
    def sanitize_user_agent(user_agent: str) -> str:
        return _WHITESPACE.sub(" ", _PARENTHETICAL.sub("", user_agent)).strip()

    @staticmethod
    def sanitize_url(url: str) -> str:
        """Path and query of ``url`` with identifying query parameters removed."""
        parts = urlsplit(urljoin(_URL_BASE, url))
        query = [
            (k, v)
            for k, v in parse_qsl(parts.query, keep_blank_values=True)
            if k not in SENSITIVE_QUERY_PARAMS
        ]
        path = parts.path or "/"
        return f"{path}?{urlencode(query)}" if query else path

    @staticmethod
    def sanitize_title(title: str) -> str:
        return _PATIENT_TITLE.sub("Patient: [Redacted]", title)

    # -- Ingestion --------------------------------------------------------------

    def _today(self) -> DailyMetrics | None:
        return self.daily_metrics.get(self._clock().date().isoformat())

    def store_page_view(self, page_view: PageView) -> PageView:
        stored = page_view.model_copy(
            update={
                "url": self.sanitize_url(page_view.url),
                "title": self.sanitize_title(page_view.title),
            }
        )
        self.page_views.append(stored)

        # only days that already saw a session get page view counts
        today = self._today()
        if today is not None:
            today.page_views += 1
        return stored

    def store_interaction(self, interaction: Interaction) -> Interaction:
        stored = interaction
        if interaction.type == "form_submit":
            stored = interaction.model_copy(update={"value": "[Redacted]"})
        self.interactions.append(stored)
        return stored

    def store_session(self, session: SessionRecord, client_ip: str) -> SessionRecord:
        stored = session.model_copy(
            update={
                "ip_hash": self.hash_ip(client_ip),
                "user_agent": self.sanitize_user_agent(session.user_agent),
            }
        )
        self.sessions[stored.session_id] = stored

        day = self.daily_metrics.setdefault(self._clock().date().isoformat(), DailyMetrics())
        day.sessions += 1
        day.unique_visitors.add(stored.session_id)
        if stored.device_type:
            day.devices[stored.device_type] += 1
        if stored.user_role:
            day.user_roles[stored.user_role] += 1
        return stored

    def handle(self, event: AnalyticsEvent, client_ip: str = "") -> None:
        """Route a validated event to the matching store method."""
        if event.event_type == "pageview":
            data = {"timestamp": event.timestamp, **event.data}
            self.store_page_view(PageView.model_validate(data))
        elif event.event_type == "interaction":
            data = {"timestamp": event.timestamp, **event.data}
            self.store_interaction(Interaction.model_validate(data))
        else:
            data = {"sessionId": str(event.session_id), **event.data}
            self.store_session(SessionRecord.model_validate(data), client_ip)
        logger.debug("Stored %s event for session %s", event.event_type, event.session_id)

    # -- Metrics ----------------------------------------------------------------

    def get_metrics(self, range_: str = DEFAULT_METRICS_RANGE) -> AnalyticsMetrics:
        """Aggregate everything recorded within the last ``range_`` days.

        Raises:
            ValueError: for an unparseable range or one reaching past year 1.
        """
        days = parse_range(range_)
        try:
            start = self._clock() - timedelta(days=days)
        except OverflowError:
            raise ValueError(f"Metrics range out of bounds: {range_!r}") from None

        total_sessions = 0
        total_page_views = 0
        unique: set[str] = set()
        devices: Counter = Counter()
        roles: Counter = Counter()
        for day, metrics in self.daily_metrics.items():
            if datetime.fromisoformat(day).replace(tzinfo=timezone.utc) < start:
                continue
            total_sessions += metrics.sessions
            total_page_views += metrics.page_views
            unique |= metrics.unique_visitors
            devices.update(metrics.devices)
            roles.update(metrics.user_roles)

        page_counts: Counter = Counter(
            pv.url
            for pv in self.page_views
            if pv.timestamp is not None and _as_utc(pv.timestamp) >= start
        )
        top_pages = [
            PageCount(url=url, views=views)
            for url, views in page_counts.most_common(TOP_PAGES_LIMIT)
        ]

        recent = [
            s
            for s in self.sessions.values()
            if s.start_time is not None and _as_utc(s.start_time) >= start and s.duration
        ]
        avg_duration = (
            sum(s.duration or 0 for s in recent) / len(recent) / 1000 if recent else 0
        )

        return AnalyticsMetrics(
            total_visitors=total_sessions,
            unique_visitors=len(unique),
            page_views=total_page_views,
            average_session_duration=int(avg_duration + 0.5),
            bounce_rate=self._bounce_rate(recent),
            top_pages=top_pages,
            user_roles=[RoleCount(role=r, count=c) for r, c in roles.items()],
            device_types=[DeviceCount(type=d, count=c) for d, c in devices.items()],
        )

    @staticmethod
    def _bounce_rate(sessions: list[SessionRecord]) -> float:
        if not sessions:
            return 0.0
        bounced = sum(1 for s in sessions if s.page_views is not None and len(s.page_views) <= 1)
        return bounced / len(sessions)

"""Unit tests for the anonymising analytics store."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from oncosaferx.models.analytics import AnalyticsEvent, Interaction, PageView, SessionRecord
from oncosaferx.services.analytics import AnalyticsStore, parse_range

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> AnalyticsStore:
    return AnalyticsStore(salt="pepper", clock=lambda: NOW)


def _session(session_id: str, **kwargs) -> SessionRecord:
    return SessionRecord(session_id=session_id, **kwargs)


@pytest.mark.parametrize("raw, days", [("7d", 7), ("30d", 30), (" 1", 1)])
def test_parse_range(raw, days):
    assert parse_range(raw) == days


def test_parse_range_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid metrics range"):
        parse_range("week")


def test_range_longer_than_the_calendar_raises_value_error(store):
    with pytest.raises(ValueError, match="out of bounds"):
        store.get_metrics("99999999d")


class TestSanitisation:
    def test_hash_ip_is_salted_prefix(self, store):
        hashed = store.hash_ip("10.0.0.1")

        assert len(hashed) == 16
        assert hashed != AnalyticsStore(salt="other").hash_ip("10.0.0.1")
        assert hashed == store.hash_ip("10.0.0.1")

    def test_user_agent_drops_platform_details(self, store):
        ua = "Mozilla/5.0 (Windows NT 10.0; Win64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120"

        assert store.sanitize_user_agent(ua) == "Mozilla/5.0 AppleWebKit/537.36 Chrome/120"

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("/patients?patient_id=123&tab=labs", "/patients?tab=labs"),
            ("https://app.test/drugs?token=abc&session=x", "/drugs"),
            ("/dashboard", "/dashboard"),
            ("", "/"),
        ],
    )
    def test_url_drops_identifying_params(self, store, url, expected):
        assert store.sanitize_url(url) == expected

    def test_title_redacts_patient_name(self, store):
        assert store.sanitize_title("Patient: Jane Doe - OncoSafeRx") == "Patient: [Redacted]- OncoSafeRx"
        assert store.sanitize_title("Drug Search") == "Drug Search"


class TestIngestion:
    def test_page_view_is_sanitised(self, store):
        stored = store.store_page_view(PageView(url="/p?user_id=9", title="Patient: Ann Lee"))

        assert stored.url == "/p"
        assert stored.title == "Patient: [Redacted]"
        assert store.page_views == [stored]

    def test_page_view_counts_only_on_days_with_sessions(self, store):
        store.store_page_view(PageView(url="/a"))
        assert store.daily_metrics == {}

        store.store_session(_session("s1"), "10.0.0.1")
        store.store_page_view(PageView(url="/b"))

        assert store.daily_metrics["2024-01-15"].page_views == 1

    def test_form_submit_value_is_redacted(self, store):
        stored = store.store_interaction(Interaction(type="form_submit", value="secret"))
        click = store.store_interaction(Interaction(type="click", value="btn"))

        assert stored.value == "[Redacted]"
        assert click.value == "btn"

    def test_session_is_anonymised_and_rolled_up(self, store):
        store.store_session(
            _session("s1", device_type="mobile", user_role="nurse", user_agent="UA (X11)"),
            "10.0.0.1",
        )

        stored = store.sessions["s1"]
        assert stored.ip_hash == store.hash_ip("10.0.0.1")
        assert stored.user_agent == "UA"
        day = store.daily_metrics["2024-01-15"]
        assert day.sessions == 1
        assert day.devices["mobile"] == 1
        assert day.user_roles["nurse"] == 1


class TestHandle:
    def test_pageview_takes_envelope_timestamp(self, store):
        event = AnalyticsEvent(
            event_type="pageview",
            session_id=uuid4(),
            timestamp=NOW,
            data={"url": "/drugs", "timeOnPage": 12},
        )

        store.handle(event)

        assert store.page_views[0].timestamp == NOW
        assert store.page_views[0].time_on_page == 12

    def test_session_end_defaults_session_id(self, store):
        session_id = uuid4()
        event = AnalyticsEvent(
            event_type="session_end",
            session_id=session_id,
            timestamp=NOW,
            data={"duration": 60000, "deviceType": "desktop"},
        )

        store.handle(event, client_ip="1.2.3.4")

        assert store.sessions[str(session_id)].device_type == "desktop"

    def test_invalid_payload_raises_validation_error(self, store):
        event = AnalyticsEvent(
            event_type="interaction",
            session_id=uuid4(),
            timestamp=NOW,
            data={"timestamp": "not a date"},
        )

        with pytest.raises(ValidationError):
            store.handle(event)


class TestMetrics:
    def test_empty_store(self, store):
        metrics = store.get_metrics()

        assert metrics.total_visitors == 0
        assert metrics.bounce_rate == 0.0
        assert metrics.top_pages == []

    def test_aggregates_recent_activity(self, store):
        store.store_session(
            _session("s1", start_time=NOW, duration=30000, page_views=["/"], device_type="desktop"),
            "10.0.0.1",
        )
        store.store_session(
            _session("s2", start_time=NOW, duration=91000, page_views=["/", "/drugs"], user_role="pharmacist"),
            "10.0.0.2",
        )
        for url in ("/drugs", "/drugs", "/"):
            store.store_page_view(PageView(url=url, timestamp=NOW))

        metrics = store.get_metrics("7d")

        assert metrics.total_visitors == 2
        assert metrics.unique_visitors == 2
        assert metrics.page_views == 3
        # (30 s + 91 s) / 2 = 60.5 s
        assert metrics.average_session_duration == 61
        assert metrics.bounce_rate == 0.5
        assert [(p.url, p.views) for p in metrics.top_pages] == [("/drugs", 2), ("/", 1)]
        assert [(r.role, r.count) for r in metrics.user_roles] == [("pharmacist", 1)]

    def test_old_days_and_page_views_fall_outside_range(self, store):
        store.store_session(_session("s1"), "10.0.0.1")
        store.daily_metrics["2023-12-01"] = store.daily_metrics.pop("2024-01-15")
        store.store_page_view(PageView(url="/old", timestamp=datetime(2023, 12, 1)))

        metrics = store.get_metrics("7d")

        assert metrics.total_visitors == 0
        assert metrics.top_pages == []

    def test_sessions_without_page_view_list_do_not_bounce(self, store):
        store.store_session(_session("s1", start_time=NOW, duration=1000), "10.0.0.1")

        assert store.get_metrics().bounce_rate == 0.0

"""tests/test_orchestrator.py — VerificationOrchestrator against an in-memory store"""
import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from verifier import VerificationOrchestrator, build_orchestrator
from verifier.errors import InvalidStateError, NotFoundError, PersistenceError
from verifier.news import NewsSignalProvider
from verifier.signals import OverallStatus, SignalStatus
from verifier.social import DisabledSocialProvider
from verifier.weather import WeatherSignalProvider

from tests.fakes import FakeProvider, signal


class MemoryStore:
    """Dict-backed stand-in for ReportStore with the same pending guard."""

    def __init__(self, reports=()):
        self.reports = {r.id: r for r in reports}
        self.writes = []
        self.fail_on = set()

    def get(self, report_id):
        return self.reports.get(report_id)

    def select_pending(self, limit):
        pending = [r for r in self.reports.values()
                   if r.verification_status == "pending" and r.ai_status != "manual-review"]
        pending.sort(key=lambda r: r.created_at, reverse=True)
        return [r.id for r in pending[:limit]]

    def apply_outcome(self, report_id, outcome):
        if report_id in self.fail_on:
            raise PersistenceError(report_id, RuntimeError("disk full"))
        report = self.reports[report_id]
        self.writes.append((report_id, outcome))
        report.ai_status = outcome.overall_status.value
        report.ai_confidence = outcome.confidence
        if report.verification_status == "pending" and outcome.moderation_status:
            report.verification_status = outcome.moderation_status.value
        return report.verification_status


def _report(report_id="r1", status="pending", ai_status="pending", age_minutes=0):
    return SimpleNamespace(
        id=report_id,
        latitude=19.07,
        longitude=72.87,
        district="Mumbai",
        state="Maharashtra",
        location_query="Mumbai Maharashtra",
        created_at=datetime.datetime.utcnow() - datetime.timedelta(minutes=age_minutes),
        verification_status=status,
        ai_status=ai_status,
        ai_confidence=None,
    )


def _orchestrator(store, weather="matched", news="matched", social="coming-soon"):
    return VerificationOrchestrator(
        store=store,
        weather=weather if isinstance(weather, FakeProvider) else FakeProvider(signal(weather)),
        news=news if isinstance(news, FakeProvider) else FakeProvider(signal(news)),
        social=social if isinstance(social, FakeProvider) else FakeProvider(signal(social)),
    )


# ── verify_one ────────────────────────────────────────────────────────────────

def test_scenario_heavy_rain_and_flood_news_verifies():
    store = MemoryStore([_report()])
    outcome = _orchestrator(store).verify_one("r1")

    assert outcome.overall_status is OverallStatus.VERIFIED
    assert outcome.confidence == 0.9
    assert outcome.social.status is SignalStatus.COMING_SOON
    assert store.reports["r1"].verification_status == "verified"


def test_scenario_dry_weather_and_no_news_disputes():
    store = MemoryStore([_report()])
    outcome = _orchestrator(store, weather="not-matched", news="not-matched").verify_one("r1")

    assert outcome.overall_status is OverallStatus.NOT_MATCHED
    assert outcome.confidence == 0.0
    assert store.reports["r1"].verification_status == "disputed"


def test_scenario_partial_weather_and_news_error_stays_pending():
    store = MemoryStore([_report()])
    outcome = _orchestrator(store, weather="partially-matched", news="error").verify_one("r1")

    assert outcome.overall_status is OverallStatus.PARTIALLY_VERIFIED
    assert outcome.confidence == 0.25
    assert store.reports["r1"].verification_status == "pending"


def test_weather_exception_does_not_block_other_sources():
    store = MemoryStore([_report()])
    weather = FakeProvider(exc=RuntimeError("socket closed"))
    outcome = _orchestrator(store, weather=weather).verify_one("r1")

    assert outcome.weather.status is SignalStatus.ERROR
    assert "socket closed" in outcome.weather.summary
    assert outcome.news.status is SignalStatus.MATCHED
    assert outcome.overall_status is OverallStatus.VERIFIED
    assert outcome.confidence == 0.4


def test_every_provider_failing_needs_manual_review():
    store = MemoryStore([_report()])
    boom = RuntimeError("boom")
    outcome = _orchestrator(
        store, FakeProvider(exc=boom), FakeProvider(exc=boom), FakeProvider(exc=boom),
    ).verify_one("r1")
    assert outcome.overall_status is OverallStatus.MANUAL_REVIEW
    assert outcome.confidence == 0.0
    assert store.reports["r1"].verification_status == "pending"


def test_providers_receive_report_context():
    store = MemoryStore([_report()])
    orch = _orchestrator(store)
    orch.verify_one("r1")

    assert orch.weather.calls == [(19.07, 72.87)]
    query, location, from_date, to_date = orch.news.calls[0]
    assert query == "flood water level"
    assert location == "Mumbai Maharashtra"
    assert to_date - from_date >= datetime.timedelta(days=3)
    assert from_date.tzinfo is not None
    assert orch.social.calls[0][0] == "Mumbai"


def test_missing_report_raises_not_found():
    with pytest.raises(NotFoundError):
        _orchestrator(MemoryStore()).verify_one("nope")


def test_non_pending_report_rejected_before_providers_run():
    store = MemoryStore([_report(status="verified")])
    orch = _orchestrator(store)
    with pytest.raises(InvalidStateError):
        orch.verify_one("r1")
    assert orch.weather.calls == []
    assert orch.news.calls == []
    assert store.writes == []


def test_second_call_after_status_change_is_refused():
    store = MemoryStore([_report()])
    orch = _orchestrator(store)
    orch.verify_one("r1")
    with pytest.raises(InvalidStateError):
        orch.verify_one("r1")
    assert store.reports["r1"].verification_status == "verified"
    assert len(store.writes) == 1


def test_evaluate_does_not_write():
    store = MemoryStore([_report()])
    outcome = _orchestrator(store).evaluate(store.get("r1"))
    assert outcome.overall_status is OverallStatus.VERIFIED
    assert store.writes == []


def test_persistence_error_propagates():
    store = MemoryStore([_report()])
    store.fail_on.add("r1")
    with pytest.raises(PersistenceError):
        _orchestrator(store).verify_one("r1")


def test_outcome_serializes_to_api_shape():
    store = MemoryStore([_report()])
    data = _orchestrator(store).verify_one("r1").to_dict()
    assert data["overallStatus"] == "verified"
    assert data["confidence"] == 0.9
    assert data["weather"]["status"] == "matched"
    assert set(data) == {"weather", "news", "social", "overallStatus", "confidence", "summary"}


# ── verify_bulk ───────────────────────────────────────────────────────────────

def test_bulk_respects_limit_newest_first():
    store = MemoryStore([_report(f"r{i}", age_minutes=i) for i in range(5)])
    results = _orchestrator(store).verify_bulk(3)

    assert results == {"processed": 3, "verified": 3, "disputed": 0, "failed": 0}
    assert [w[0] for w in store.writes] == ["r0", "r1", "r2"]
    assert store.reports["r4"].verification_status == "pending"


def test_bulk_skips_manual_review_reports():
    store = MemoryStore([
        _report("parked", ai_status="manual-review"),
        _report("fresh", age_minutes=5),
    ])
    results = _orchestrator(store, weather="not-matched", news="not-matched").verify_bulk(10)

    assert results["processed"] == 1
    assert results["disputed"] == 1
    assert [w[0] for w in store.writes] == ["fresh"]


def test_bulk_counts_failures_and_continues():
    store = MemoryStore([_report("a"), _report("b", age_minutes=1), _report("c", age_minutes=2)])
    store.fail_on.add("b")
    results = _orchestrator(store).verify_bulk(10)

    assert results == {"processed": 2, "verified": 2, "disputed": 0, "failed": 1}
    assert results["processed"] + results["failed"] == 3


def test_bulk_survives_unexpected_store_errors():
    store = MemoryStore([_report("a")])
    store.apply_outcome = MagicMock(side_effect=KeyError("a"))
    results = _orchestrator(store).verify_bulk(5)
    assert results["failed"] == 1
    assert results["processed"] == 0


def test_bulk_with_nothing_pending():
    results = _orchestrator(MemoryStore([_report(status="disputed")])).verify_bulk(10)
    assert results == {"processed": 0, "verified": 0, "disputed": 0, "failed": 0}


# ── Wiring ────────────────────────────────────────────────────────────────────

def test_build_orchestrator_from_config():
    config = {"WEATHER_API_KEY": "w", "NEWS_API_KEY": "n", "VERIFY_MAX_WORKERS": 2}
    orch = build_orchestrator(config, MemoryStore())
    assert isinstance(orch.weather, WeatherSignalProvider)
    assert isinstance(orch.news, NewsSignalProvider)
    assert isinstance(orch.social, DisabledSocialProvider)
    assert orch.max_workers == 2


# ── Real providers over mocked HTTP ───────────────────────────────────────────

def _http(payload=None, exc=None):
    session = MagicMock()
    if exc is not None:
        session.get.side_effect = exc
        return session
    resp = MagicMock()
    resp.json.return_value = payload
    session.get.return_value = resp
    return session


def _weather_payload(rain_1h, humidity):
    data = {
        "main": {"temp": 27, "humidity": humidity, "pressure": 1006},
        "wind": {"speed": 3.0, "deg": 180},
        "weather": [{"description": "rain"}],
    }
    if rain_1h:
        data["rain"] = {"1h": rain_1h}
    return data


FLOOD_NEWS = {"status": "ok", "articles": [
    {"source": {"name": "City Desk"}, "title": "Flood waters enter homes in Mumbai",
     "description": "Water level rising near the river"},
]}
NO_NEWS = {"status": "ok", "articles": []}


@pytest.mark.parametrize("weather_http,news_http,expected,confidence,moderation", [
    (_http(_weather_payload(20, 70)), _http(FLOOD_NEWS),
     OverallStatus.VERIFIED, 0.9, "verified"),
    (_http(_weather_payload(1, 40)), _http(NO_NEWS),
     OverallStatus.NOT_MATCHED, 0.0, "disputed"),
    (_http(_weather_payload(7, 60)), _http(exc=requests.ConnectionError("dns failure")),
     OverallStatus.PARTIALLY_VERIFIED, 0.25, "pending"),
], ids=["heavy-rain-with-coverage", "dry-and-quiet", "moderate-rain-news-down"])
def test_scenarios_from_raw_payloads(weather_http, news_http, expected, confidence, moderation):
    store = MemoryStore([_report()])
    orch = VerificationOrchestrator(
        store=store,
        weather=WeatherSignalProvider("w-key", session=weather_http),
        news=NewsSignalProvider("n-key", session=news_http),
        social=DisabledSocialProvider(),
    )
    outcome = orch.verify_one("r1")

    assert outcome.overall_status is expected
    assert outcome.confidence == confidence
    assert outcome.social.status is SignalStatus.COMING_SOON
    assert store.reports["r1"].verification_status == moderation

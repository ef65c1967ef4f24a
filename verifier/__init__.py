"""
verifier/__init__.py — VerificationOrchestrator.

Runs the weather, news and social providers for a report, scores and
reconciles their results, and writes the outcome back through the
ReportStore.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

from verifier import reconcile, scoring
from verifier.errors import InvalidStateError, NotFoundError, VerificationError
from verifier.news import NewsSignalProvider
from verifier.signals import (
    ModerationStatus, OverallStatus, SignalResult, VerificationOutcome,
)
from verifier.social import social_provider_from_config
from verifier.weather import WeatherSignalProvider

logger = logging.getLogger(__name__)

NEWS_QUERY = "flood water level"
NEWS_LOOKBACK = timedelta(days=3)


class VerificationOrchestrator:
    """Verifies reports against the weather, news and social providers."""

    def __init__(self, store, weather, news, social, max_workers: int = 3):
        self.store = store
        self.weather = weather
        self.news = news
        self.social = social
        self.max_workers = max_workers

    # ── Single report ─────────────────────────────────────────────────────────

    def verify_one(self, report_id: str) -> VerificationOutcome:
        """
        Verify one pending report and persist the outcome.

        Raises NotFoundError, InvalidStateError (before any provider call)
        or PersistenceError.
        """
        report = self.store.get(report_id)
        if report is None:
            raise NotFoundError(report_id)
        if report.verification_status != ModerationStatus.PENDING.value:
            raise InvalidStateError(report_id, report.verification_status)

        logger.info("Starting AI verification for report %s", report_id)
        outcome = self.evaluate(report)
        status = self.store.apply_outcome(report_id, outcome)
        logger.info(
            "AI verification completed for report %s: %s (confidence=%.2f, moderation=%s)",
            report_id, outcome.overall_status.value, outcome.confidence, status,
        )
        return outcome

    def evaluate(self, report) -> VerificationOutcome:
        """Query all providers for a report and build the outcome. No writes."""
        # Read everything off the report before fanning out to worker threads
        latitude, longitude = report.latitude, report.longitude
        location, district = report.location_query, report.district
        created_at = _as_utc(report.created_at)
        now = datetime.now(timezone.utc)

        calls: Dict[str, Callable[[], SignalResult]] = {
            "weather": lambda: self.weather.get_signal(latitude, longitude),
            "news": lambda: self.news.get_signal(
                NEWS_QUERY, location, created_at - NEWS_LOOKBACK, now,
            ),
            "social": lambda: self.social.get_signal(district, created_at),
        }

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {name: pool.submit(_guarded, name, fn) for name, fn in calls.items()}
            results = {name: future.result() for name, future in futures.items()}

        confidence = scoring.compute(results["weather"], results["news"], results["social"])
        overall, summary = reconcile.reconcile(results["weather"], results["news"], results["social"])

        return VerificationOutcome(
            weather=results["weather"],
            news=results["news"],
            social=results["social"],
            overall_status=overall,
            confidence=confidence,
            summary=summary,
        )

    # ── Bulk ──────────────────────────────────────────────────────────────────

    def verify_bulk(self, limit: int) -> Dict[str, Any]:
        """Verify up to ``limit`` pending reports, newest first."""
        results = {"processed": 0, "verified": 0, "disputed": 0, "failed": 0}

        report_ids = self.store.select_pending(limit)
        if not report_ids:
            logger.info("Bulk verification: no pending reports found")
            return results

        for report_id in report_ids:
            try:
                outcome = self.verify_one(report_id)
            except VerificationError as exc:
                logger.error("Error verifying report %s: %s", report_id, exc)
                results["failed"] += 1
                continue
            except Exception as exc:
                logger.error("Unexpected error verifying report %s: %s", report_id, exc, exc_info=True)
                results["failed"] += 1
                continue

            results["processed"] += 1
            if outcome.overall_status is OverallStatus.VERIFIED:
                results["verified"] += 1
            elif outcome.overall_status is OverallStatus.NOT_MATCHED:
                results["disputed"] += 1

        logger.info("Bulk verification completed: %s", results)
        return results


def _guarded(source: str, fn: Callable[[], SignalResult]) -> SignalResult:
    """Run one provider call; any exception degrades that source to error."""
    try:
        return fn()
    except Exception as exc:
        logger.error("%s verification failed: %s", source.title(), exc, exc_info=True)
        return SignalResult.error(source, exc)


def _as_utc(value) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def build_orchestrator(config, store) -> VerificationOrchestrator:
    """Wire the providers named in the Flask config around a store."""
    return VerificationOrchestrator(
        store=store,
        weather=WeatherSignalProvider.from_config(config),
        news=NewsSignalProvider.from_config(config),
        social=social_provider_from_config(config),
        max_workers=config.get("VERIFY_MAX_WORKERS", 3),
    )

"""
verifier/store.py — ReportStore, the persistence side of verification.

All writes go through one UPDATE statement per report; the moderation
status only moves when the row is still pending at write time.
"""
import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from models.report import Report
from verifier.errors import NotFoundError, PersistenceError
from verifier.scoring import HIGH_CONFIDENCE, LOW_CONFIDENCE
from verifier.signals import ModerationStatus, OverallStatus, VerificationOutcome

logger = logging.getLogger(__name__)

PENDING = ModerationStatus.PENDING.value


class ReportStore:
    """Thin adapter over the Flask-SQLAlchemy session."""

    def __init__(self, db):
        self.db = db

    def get(self, report_id: str) -> Optional[Report]:
        return self.db.session.get(Report, report_id)

    def select_pending(self, limit: int) -> List[str]:
        """Newest pending reports not already parked for manual review."""
        stmt = (
            select(Report.id)
            .where(
                Report.verification_status == PENDING,
                or_(Report.ai_status.is_(None),
                    Report.ai_status != OverallStatus.MANUAL_REVIEW.value),
            )
            .order_by(Report.created_at.desc())
            .limit(limit)
        )
        return list(self.db.session.execute(stmt).scalars())

    def apply_outcome(self, report_id: str, outcome: VerificationOutcome) -> str:
        """
        Replace the verification block and confidence of one report.

        Returns the report's verification_status after the write.
        """
        values = {
            "ai_status": outcome.overall_status.value,
            "ai_summary": outcome.summary,
            "ai_confidence": outcome.confidence,
            "verification_sources": {name: r.to_dict() for name, r in outcome.sources.items()},
            "updated_at": datetime.datetime.utcnow(),
        }
        target = outcome.moderation_status
        if target is not None:
            values["verification_status"] = case(
                (Report.verification_status == PENDING, target.value),
                else_=Report.verification_status,
            )

        stmt = (
            update(Report)
            .where(Report.id == report_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.session.execute(stmt)
            if result.rowcount == 0:
                self.db.session.rollback()
                raise NotFoundError(report_id)
            self.db.session.commit()
        except SQLAlchemyError as exc:
            self.db.session.rollback()
            logger.error("Failed to persist verification for %s: %s", report_id, exc)
            raise PersistenceError(report_id, exc) from exc

        stmt = select(Report.verification_status).where(Report.id == report_id)
        return self.db.session.execute(stmt).scalar_one_or_none() or PENDING

    def statistics(self) -> Dict[str, Any]:
        def count(*criteria) -> int:
            stmt = select(func.count()).select_from(Report)
            if criteria:
                stmt = stmt.where(and_(*criteria))
            return self.db.session.execute(stmt).scalar_one()

        status = Report.verification_status
        return {
            "totalReports": count(),
            "statusCounts": {
                s: count(status == s) for s in ("pending", "verified", "disputed", "false")
            },
            "aiVerification": {
                "aiVerified": count(Report.ai_status == OverallStatus.VERIFIED.value,
                                    status == "verified"),
                "aiDisputed": count(Report.ai_status == OverallStatus.NOT_MATCHED.value,
                                    status.in_(["disputed", "false"])),
                "manualReview": count(Report.ai_status == OverallStatus.MANUAL_REVIEW.value),
                "highConfidence": count(Report.ai_confidence >= HIGH_CONFIDENCE),
                "lowConfidence": count(Report.ai_confidence < LOW_CONFIDENCE,
                                       Report.ai_confidence > 0),
            },
        }

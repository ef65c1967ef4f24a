"""
models/report.py — SQLAlchemy models for citizen incident reports.

FloodReport and WaterIssue share one table, told apart by ``kind``.
The AI verification block lives in ``ai_status``/``ai_summary`` plus the
JSON ``verification_sources`` column and is owned by the verifier.
"""
import datetime
import secrets

from sqlalchemy import event, inspect
from sqlalchemy.orm import validates

from extensions import db
from models.reporter import Reporter

SEVERITIES = ("low", "medium", "high", "critical")

# Midpoint (metres) of the depth band each water level describes
WATER_LEVEL_DEPTHS = {
    "minor-pooling": 0.055,
    "ankle-deep": 0.2,
    "knee-deep": 0.5,
    "waist-deep": 0.95,
    "chest-deep": 1.5,
    "above-head": 2.4,
    "window-level": 2.4,
    "roof-level": 4.5,
    "above-roof": 8.0,
}

ISSUE_TYPES = (
    "supply-interruption", "low-pressure", "water-quality", "contamination",
    "leakage", "infrastructure", "other",
)

SEVERITY_URGENCY = {"low": 3, "medium": 5, "high": 7, "critical": 10}

FLOOD_REPORT_TTL = datetime.timedelta(hours=48)
RESOLVED_ISSUE_TTL = datetime.timedelta(days=30)


def _generate_id() -> str:
    return secrets.token_hex(12)


class Report(db.Model):
    __tablename__ = "report"

    id = db.Column(db.String(24), primary_key=True, default=_generate_id)
    kind = db.Column(db.String(16), nullable=False)
    reported_by_id = db.Column(db.Integer, db.ForeignKey("reporter.id"), nullable=False)
    reported_by = db.relationship(Reporter, backref=db.backref("reports", lazy=True))

    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    address = db.Column(db.String(255))
    district = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(120), nullable=False)
    landmark = db.Column(db.String(255))

    severity = db.Column(db.String(16), nullable=False)   # 'low' | 'medium' | 'high' | 'critical'
    description = db.Column(db.Text, nullable=False)
    urgency_level = db.Column(db.Integer, default=5)
    is_active = db.Column(db.Boolean, default=True)

    upvotes = db.Column(db.Integer, default=0, nullable=False)
    downvotes = db.Column(db.Integer, default=0, nullable=False)

    verification_status = db.Column(db.String(16), default="pending", nullable=False, index=True)
    verification_notes = db.Column(db.Text)

    ai_confidence = db.Column(db.Float)
    ai_status = db.Column(db.String(24), default="pending", nullable=False)
    ai_summary = db.Column(db.Text)
    verification_sources = db.Column(db.JSON)   # {"weather": {...}, "news": {...}, "social": {...}}

    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow,
                           onupdate=datetime.datetime.utcnow)

    __mapper_args__ = {"polymorphic_on": kind}

    MODERATION_STATUSES = ("pending", "verified", "disputed", "false")

    @validates("severity")
    def _validate_severity(self, key, value):
        if value not in SEVERITIES:
            raise ValueError(f"severity must be one of {SEVERITIES}, got {value!r}")
        return value

    @validates("verification_status")
    def _validate_verification_status(self, key, value):
        if value not in self.MODERATION_STATUSES:
            raise ValueError(f"verification_status must be one of {self.MODERATION_STATUSES}, got {value!r}")
        return value

    @property
    def coordinates(self):
        """(longitude, latitude), GeoJSON order."""
        return self.longitude, self.latitude

    @property
    def location_query(self) -> str:
        return f"{self.district} {self.state}"

    @property
    def credibility_score(self) -> int:
        """Reporter trust (0-1000) weighted 0.6, community vote ratio weighted 0.4."""
        total_votes = (self.upvotes or 0) + (self.downvotes or 0)
        vote_ratio = (self.upvotes or 0) / total_votes if total_votes > 0 else 0.5
        trust = self.reported_by.trust_score if self.reported_by else 0
        return round(((trust / 1000) * 0.6 + vote_ratio * 0.4) * 100)

    @property
    def verification(self):
        sources = self.verification_sources or {}
        return {
            "status": self.ai_status or "pending",
            "summary": self.ai_summary or "Not verified yet",
            "weather": sources.get("weather", {}),
            "news": sources.get("news", {}),
            "social": sources.get("social", {}),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "location": {
                "type": "Point",
                "coordinates": list(self.coordinates),
                "address": self.address,
                "district": self.district,
                "state": self.state,
                "landmark": self.landmark,
            },
            "severity": self.severity,
            "description": self.description,
            "urgencyLevel": self.urgency_level,
            "isActive": self.is_active,
            "verificationStatus": self.verification_status,
            "aiConfidence": self.ai_confidence,
            "verification": self.verification,
            "credibilityScore": self.credibility_score,
            "createdAt": self.created_at.isoformat() + "Z" if self.created_at else None,
        }

    def __repr__(self):
        return f"<{type(self).__name__} {self.id} [{self.verification_status}]>"


class FloodReport(Report):
    water_level = db.Column(db.String(16), default="ankle-deep")
    depth = db.Column(db.Float, default=0)

    __mapper_args__ = {"polymorphic_identity": "flood"}

    @validates("water_level")
    def _validate_water_level(self, key, value):
        if value not in WATER_LEVEL_DEPTHS:
            raise ValueError(f"unknown water level {value!r}")
        return value

    def estimate_depth(self) -> float:
        return WATER_LEVEL_DEPTHS.get(self.water_level or "ankle-deep", 0.0)

    def check_expiry(self, now=None) -> bool:
        """Deactivate reports older than 48 hours. Returns True if changed."""
        now = now or datetime.datetime.utcnow()
        if self.is_active and self.created_at and now - self.created_at > FLOOD_REPORT_TTL:
            self.is_active = False
            return True
        return False

    def to_dict(self):
        data = super().to_dict()
        data.update({"waterLevel": self.water_level, "depth": self.depth})
        return data


class WaterIssue(Report):
    issue_type = db.Column(db.String(32))
    taste_abnormality = db.Column(db.Boolean, default=False)
    status = db.Column(db.String(32), default="reported")
    resolved_at = db.Column(db.DateTime)

    __mapper_args__ = {"polymorphic_identity": "water-issue"}

    MODERATION_STATUSES = Report.MODERATION_STATUSES + ("resolved",)

    @validates("issue_type")
    def _validate_issue_type(self, key, value):
        if value not in ISSUE_TYPES:
            raise ValueError(f"issue_type must be one of {ISSUE_TYPES}, got {value!r}")
        return value

    def compute_urgency(self) -> int:
        urgency = SEVERITY_URGENCY.get(self.severity, 5)
        if self.issue_type == "contamination":
            urgency = min(10, urgency + 2)
        elif self.issue_type == "water-quality" and self.taste_abnormality:
            urgency = min(10, urgency + 1)
        return urgency

    def check_expiry(self, now=None) -> bool:
        """Deactivate issues resolved more than 30 days ago. Returns True if changed."""
        now = now or datetime.datetime.utcnow()
        if (self.is_active and self.status == "resolved" and self.resolved_at
                and now - self.resolved_at > RESOLVED_ISSUE_TTL):
            self.is_active = False
            return True
        return False

    def to_dict(self):
        data = super().to_dict()
        data.update({
            "issueType": self.issue_type,
            "status": self.status,
            "resolvedAt": self.resolved_at.isoformat() + "Z" if self.resolved_at else None,
        })
        return data


# ── Derived fields ─────────────────────────────────────────────────────────────

@event.listens_for(FloodReport, "before_insert")
@event.listens_for(FloodReport, "before_update")
def _fill_depth(mapper, connection, target):
    if not target.depth:
        target.depth = target.estimate_depth()


@event.listens_for(WaterIssue, "before_insert")
def _set_urgency_on_insert(mapper, connection, target):
    target.urgency_level = target.compute_urgency()


@event.listens_for(WaterIssue, "before_update")
def _set_urgency_on_update(mapper, connection, target):
    state = inspect(target)
    if state.attrs.severity.history.has_changes() or state.attrs.issue_type.history.has_changes():
        target.urgency_level = target.compute_urgency()


@event.listens_for(FloodReport, "before_update")
@event.listens_for(WaterIssue, "before_update")
def _expire_on_save(mapper, connection, target):
    target.check_expiry()

"""
verifier/signals.py — status enums and value types shared by the providers,
the scorer, the reconciler and the orchestrator.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SignalStatus(str, Enum):
    MATCHED = "matched"
    PARTIALLY_MATCHED = "partially-matched"
    NOT_MATCHED = "not-matched"
    PENDING = "pending"
    ERROR = "error"
    COMING_SOON = "coming-soon"
    MOCK_VERIFIED = "mock-verified"


class OverallStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    PARTIALLY_VERIFIED = "partially-verified"
    NOT_MATCHED = "not-matched"
    MANUAL_REVIEW = "manual-review"


class ModerationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    DISPUTED = "disputed"
    FALSE = "false"


@dataclass(frozen=True)
class SignalResult:
    status: SignalStatus
    summary: str
    snapshot: Optional[Any] = None

    @classmethod
    def error(cls, source: str, reason: Any) -> "SignalResult":
        return cls(SignalStatus.ERROR, f"Error verifying {source}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "summary": self.summary,
            "snapshot": self.snapshot,
        }


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of one verification run. Computed first, persisted second."""
    weather: SignalResult
    news: SignalResult
    social: SignalResult
    overall_status: OverallStatus
    confidence: float
    summary: str

    @property
    def sources(self) -> Dict[str, SignalResult]:
        return {"weather": self.weather, "news": self.news, "social": self.social}

    @property
    def moderation_status(self) -> Optional[ModerationStatus]:
        """Moderation status this outcome moves a pending report to, if any."""
        if self.overall_status is OverallStatus.VERIFIED:
            return ModerationStatus.VERIFIED
        if self.overall_status is OverallStatus.NOT_MATCHED:
            return ModerationStatus.DISPUTED
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weather": self.weather.to_dict(),
            "news": self.news.to_dict(),
            "social": self.social.to_dict(),
            "overallStatus": self.overall_status.value,
            "confidence": self.confidence,
            "summary": self.summary,
        }

"""
verifier/social.py — Social media signal provider.

Two variants share one interface: Disabled (no credentials) reports
"coming soon"; Enabled returns a placeholder post until the Instagram
integration lands. Neither status earns confidence.
"""
import logging
from datetime import datetime, timezone

from verifier.signals import SignalResult, SignalStatus

logger = logging.getLogger(__name__)


class DisabledSocialProvider:
    enabled = False

    def get_signal(self, location: str, time: datetime) -> SignalResult:
        return SignalResult(
            SignalStatus.COMING_SOON,
            "Social media verification coming soon",
            {"posts": [], "source": "Instagram", "reason": "access token not configured"},
        )


class EnabledSocialProvider:
    enabled = True

    def __init__(self, access_token: str):
        self.access_token = access_token

    def get_signal(self, location: str, time: datetime) -> SignalResult:
        # TODO: query the Instagram Graph API places search once app review is granted
        post = {
            "id": "mock_insta_1",
            "caption": f"Mock Instagram post about flood in {location} around {time.isoformat() if time else 'now'}.",
            "media_url": "https://via.placeholder.com/150?text=Instagram+Post",
            "permalink": "https://www.instagram.com/p/mockpost1/",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return SignalResult(
            SignalStatus.MOCK_VERIFIED,
            f"Mock: Found 1 Instagram post near {location}. (Feature coming soon)",
            {"posts": [post], "source": "Instagram (Mock)"},
        )


def social_provider_from_config(config):
    token = config.get("INSTAGRAM_ACCESS_TOKEN")
    if not token:
        logger.info("INSTAGRAM_ACCESS_TOKEN not set; social verification disabled")
        return DisabledSocialProvider()
    return EnabledSocialProvider(token)

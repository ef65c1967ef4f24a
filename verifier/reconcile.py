"""
verifier/reconcile.py — collapse per-source statuses into one overall status.

Only weather and news take part; social is not yet a reliable source.
"""
from typing import Tuple

from verifier.signals import OverallStatus, SignalResult, SignalStatus


def reconcile(
    weather: SignalResult,
    news: SignalResult,
    social: SignalResult,
) -> Tuple[OverallStatus, str]:
    """
    Return (overall status, summary). Rules are evaluated in order:

        1. any source matched                          → verified
        2. any partially-matched and none not-matched  → partially-verified
        3. two or more not-matched                     → not-matched
        4. otherwise                                   → manual-review
    """
    statuses = [weather.status, news.status]
    matched = statuses.count(SignalStatus.MATCHED)
    partial = statuses.count(SignalStatus.PARTIALLY_MATCHED)
    not_matched = statuses.count(SignalStatus.NOT_MATCHED)

    if matched >= 1:
        return OverallStatus.VERIFIED, f"Verified through {matched} data sources"
    if partial >= 1 and not_matched == 0:
        return OverallStatus.PARTIALLY_VERIFIED, "Partially verified, needs review"
    if not_matched >= 2:
        return OverallStatus.NOT_MATCHED, "Could not verify through available data sources"
    return (
        OverallStatus.MANUAL_REVIEW,
        "Insufficient data for automatic verification, needs manual review",
    )

"""
blueprints/api/routes.py — REST API endpoints for the Flood Verification service.

Routes:
    GET   /api/v1/health
    POST  /api/v1/verify/<report_id>
    POST  /api/v1/bulk-verify
    GET   /api/v1/status/<report_id>
    GET   /api/v1/statistics
    GET   /api/v1/weather/current/<lat>/<lng>
    GET   /api/v1/weather/flood-risk?lat=&lng=
    GET   /api/v1/weather/alerts?lat=&lng=
"""
import logging

from flask import current_app, request, jsonify

from blueprints.api import api_bp
from extensions import db, limiter
from models.report import Report
from verifier.errors import (
    InvalidStateError, NotFoundError, PersistenceError, ProviderError,
)
from verifier.weather import assess_flood_risk, weather_alerts

logger = logging.getLogger(__name__)


def _verifier():
    return current_app.extensions["verifier"]


def _coordinates(lat=None, lng=None):
    """Parse lat/lng (path values or ?lat=&lng=) into floats. Raises ValueError on bad input."""
    try:
        lat = float(request.args["lat"] if lat is None else lat)
        lng = float(request.args["lng"] if lng is None else lng)
    except (KeyError, TypeError, ValueError):
        raise ValueError("lat and lng must be numbers")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValueError("lat must be within [-90, 90] and lng within [-180, 180]")
    return lat, lng


# ── Routes ──────────────────────────────────────────────────────────────────────

@api_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": current_app.config.get("VERSION", "1.0.0")}), 200


@api_bp.route("/verify/<report_id>", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("RATE_LIMIT", "60 per minute"))
def verify_report(report_id: str):
    """POST /api/v1/verify/<id> — run AI verification on one pending report."""
    try:
        outcome = _verifier().verify_one(report_id)
    except NotFoundError:
        return jsonify({"message": "Report not found"}), 404
    except InvalidStateError:
        return jsonify({"message": "This report has already been verified or rejected"}), 400
    except PersistenceError as e:
        logger.error("AI verification route error: %s", e)
        return jsonify({"message": f"Error during AI verification: {e}"}), 500

    return jsonify({
        "message": "AI verification completed",
        "status": outcome.overall_status.value,
        "confidence": outcome.confidence,
        "details": outcome.to_dict(),
    }), 200


@api_bp.route("/bulk-verify", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("RATE_LIMIT", "60 per minute"))
def bulk_verify():
    """POST /api/v1/bulk-verify — verify up to `limit` pending reports."""
    body = request.get_json(silent=True) or {}
    limit = body.get("limit", current_app.config.get("BULK_VERIFY_DEFAULT_LIMIT", 20))

    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        return jsonify({"message": "limit must be a positive integer"}), 400
    limit = min(limit, current_app.config.get("BULK_VERIFY_MAX_LIMIT", 50))

    results = _verifier().verify_bulk(limit)
    message = "Bulk verification completed" if results["processed"] or results["failed"] \
        else "No pending reports found"
    return jsonify({"message": message, "results": results}), 200


@api_bp.route("/status/<report_id>", methods=["GET"])
def verification_status(report_id: str):
    """GET /api/v1/status/<id> — persisted verification state, no re-run."""
    report = db.session.get(Report, report_id)
    if not report:
        return jsonify({"message": "Report not found"}), 404

    verification = report.verification
    return jsonify({
        "reportId": report.id,
        "verificationStatus": report.verification_status,
        "credibilityScore": report.credibility_score,
        "aiVerification": {
            "status": verification["status"],
            "confidence": report.ai_confidence or 0,
            "summary": verification["summary"],
            "weather": verification["weather"],
            "news": verification["news"],
            "social": verification["social"],
        },
    }), 200


@api_bp.route("/statistics", methods=["GET"])
def statistics():
    """GET /api/v1/statistics — report counts by moderation and AI status."""
    return jsonify(_verifier().store.statistics()), 200


@api_bp.route("/weather/current/<lat>/<lng>", methods=["GET"])
def current_weather(lat: str, lng: str):
    try:
        lat, lng = _coordinates(lat, lng)
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        weather = _verifier().weather.get_conditions(lat, lng)
    except ProviderError as e:
        logger.error("Current weather lookup failed: %s", e)
        return jsonify({"success": False, "message": "Failed to fetch weather data",
                        "error": e.message}), 502

    return jsonify({"success": True, "weather": weather}), 200


@api_bp.route("/weather/flood-risk", methods=["GET"])
def flood_risk():
    try:
        lat, lng = _coordinates()
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        conditions = _verifier().weather.get_conditions(lat, lng)
    except ProviderError as e:
        logger.error("Flood risk assessment failed: %s", e)
        return jsonify({"success": False, "message": "Failed to assess flood risk",
                        "error": e.message}), 502

    return jsonify({"success": True, "riskAssessment": assess_flood_risk(conditions)}), 200


@api_bp.route("/weather/alerts", methods=["GET"])
def alerts():
    try:
        lat, lng = _coordinates()
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        conditions = _verifier().weather.get_conditions(lat, lng)
    except ProviderError as e:
        logger.error("Weather alerts failed: %s", e)
        return jsonify({"success": False, "message": "Failed to fetch weather alerts",
                        "error": e.message}), 502

    return jsonify({"success": True, "alerts": weather_alerts(assess_flood_risk(conditions))}), 200

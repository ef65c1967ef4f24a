"""
verifier/weather.py — Weather signal provider.

Fetches current conditions from OpenWeatherMap, classifies them against
flood thresholds, and derives a flood-risk assessment and weather alerts
from the same conditions.
"""
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from verifier.errors import ProviderError
from verifier.signals import SignalResult, SignalStatus

logger = logging.getLogger(__name__)

SOURCE = "weather"

# Classification thresholds (mm, mm, %)
MATCH_PRECIPITATION = 15
MATCH_DAILY_PRECIPITATION = 50
MATCH_HUMIDITY = 90
PARTIAL_PRECIPITATION = 5
PARTIAL_DAILY_PRECIPITATION = 20

RISK_LEVELS = [
    (7, "critical"),
    (5, "high"),
    (3, "medium"),
    (1, "low"),
]

ALERTS = {
    "critical": {
        "type": "flood_warning",
        "title": "Critical Flood Risk",
        "message": "Extremely high flood risk due to weather conditions. Take immediate precautions.",
    },
    "high": {
        "type": "flood_watch",
        "title": "High Flood Risk",
        "message": "High flood risk detected. Monitor conditions closely and be prepared to take action.",
    },
    "medium": {
        "type": "flood_advisory",
        "title": "Moderate Flood Risk",
        "message": "Moderate flood risk due to current weather conditions. Stay informed.",
    },
}


class WeatherSignalProvider:
    """Current-conditions lookup with a short per-coordinate cache."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openweathermap.org/data/2.5",
        timeout: float = 5,
        cache_seconds: int = 300,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self.session = session or requests.Session()
        self._cache: Dict[Tuple[float, float], Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = time.monotonic()

    @classmethod
    def from_config(cls, config) -> "WeatherSignalProvider":
        return cls(
            api_key=config.get("WEATHER_API_KEY"),
            base_url=config.get("WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"),
            timeout=config.get("WEATHER_TIMEOUT", 5),
            cache_seconds=config.get("WEATHER_CACHE_SECONDS", 300),
        )

    def get_signal(self, latitude: float, longitude: float) -> SignalResult:
        try:
            conditions = self.get_conditions(latitude, longitude)
        except ProviderError as exc:
            logger.error("Weather verification failed: %s", exc.message)
            return SignalResult.error(SOURCE, exc.message)
        return classify(conditions)

    def get_conditions(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """
        Return normalized current conditions, serving from cache when fresh.

        Raises ProviderError when the API fails and no cached entry exists.
        """
        key = (round(latitude, 2), round(longitude, 2))
        now = time.monotonic()

        with self._lock:
            cached = self._cache.get(key)
            if cached and now - cached[0] < self.cache_seconds:
                logger.debug("Using cached weather data for %s", key)
                return cached[1]
            # Expired entries leave the cache; the local copy still backs the stale fallback
            self._cache.pop(key, None)

        try:
            conditions = self._fetch(latitude, longitude)
        except ProviderError:
            if cached:
                logger.warning("Weather API failed; serving stale cache for %s", key)
                return {**cached[1], "source": "Cached Data (API unavailable)"}
            raise

        if now - self._last_cleanup >= self.cache_seconds:
            self.cleanup_cache(now)
        with self._lock:
            self._cache[key] = (now, conditions)
        return conditions

    def cleanup_cache(self, now: Optional[float] = None) -> int:
        """Drop entries older than cache_seconds. Returns how many were removed."""
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [k for k, (ts, _) in self._cache.items() if now - ts >= self.cache_seconds]
            for k in expired:
                del self._cache[k]
            self._last_cleanup = now
        if expired:
            logger.debug("Removed %d expired weather cache entries", len(expired))
        return len(expired)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _fetch(self, latitude: float, longitude: float) -> Dict[str, Any]:
        if not self.api_key:
            raise ProviderError(SOURCE, "weather API key not configured")

        logger.info("Fetching weather data for %s, %s", latitude, longitude)
        try:
            resp = self.session.get(
                f"{self.base_url}/weather",
                params={
                    "lat": latitude,
                    "lon": longitude,
                    "appid": self.api_key,
                    "units": "metric",
                },
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as exc:
            raise ProviderError(SOURCE, f"request timed out after {self.timeout}s", exc)
        except requests.RequestException as exc:
            raise ProviderError(SOURCE, f"request failed: {exc}", exc)
        except ValueError as exc:
            raise ProviderError(SOURCE, f"malformed response: {exc}", exc)

        return _normalize(data)


def _normalize(data: Any) -> Dict[str, Any]:
    """Map an OpenWeatherMap /weather payload onto the conditions dict."""
    try:
        main = data["main"]
        wind = data.get("wind") or {}
        rain = data.get("rain") or {}
        snow = data.get("snow") or {}
        described = (data.get("weather") or [{}])[0]
        return {
            "temperature": main["temp"],
            "humidity": main["humidity"],
            "pressure": main.get("pressure"),
            "windSpeed": wind.get("speed", 0),
            "windDirection": wind.get("deg", 0),
            "description": described.get("description", "Clear"),
            "precipitation": rain.get("1h") or snow.get("1h") or 0,
            # The current-conditions endpoint carries no daily accumulation
            "dailyPrecipitation": 0,
            "source": "OpenWeatherMap",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except (KeyError, TypeError, AttributeError, IndexError) as exc:
        raise ProviderError(SOURCE, f"malformed response: missing {exc}", exc)


def classify(conditions: Dict[str, Any]) -> SignalResult:
    """Classify current conditions; first matching rule wins."""
    precipitation = conditions.get("precipitation") or 0
    daily = conditions.get("dailyPrecipitation") or 0
    humidity = conditions.get("humidity") or 0

    if (precipitation > MATCH_PRECIPITATION
            or daily > MATCH_DAILY_PRECIPITATION
            or humidity > MATCH_HUMIDITY):
        return SignalResult(
            SignalStatus.MATCHED,
            f"Weather conditions support flood report: {precipitation}mm rainfall, "
            f"{daily}mm daily, {humidity}% humidity",
            conditions,
        )
    if precipitation > PARTIAL_PRECIPITATION or daily > PARTIAL_DAILY_PRECIPITATION:
        return SignalResult(
            SignalStatus.PARTIALLY_MATCHED,
            f"Weather shows moderate rainfall: {precipitation}mm rainfall, {daily}mm daily",
            conditions,
        )
    return SignalResult(
        SignalStatus.NOT_MATCHED,
        f"Weather conditions don't indicate flooding: {precipitation}mm rainfall, {daily}mm daily",
        conditions,
    )


def assess_flood_risk(conditions: Dict[str, Any]) -> Dict[str, Any]:
    """
    Score weather-driven flood risk.

    Returns:
        {"level": str, "score": int, "reasons": [...], "weather": {...},
         "assessmentTime": iso8601}
    """
    precipitation = conditions.get("precipitation") or 0
    daily = conditions.get("dailyPrecipitation") or 0
    humidity = conditions.get("humidity") or 0
    temperature = conditions.get("temperature")

    score = 0
    reasons: List[str] = []

    if precipitation > 10:
        score += 3
        reasons.append("Heavy current rainfall")
    elif precipitation > 5:
        score += 2
        reasons.append("Moderate current rainfall")
    elif precipitation > 0:
        score += 1
        reasons.append("Light rainfall detected")

    if daily > 50:
        score += 4
        reasons.append("Very high daily rainfall accumulation")
    elif daily > 25:
        score += 3
        reasons.append("High daily rainfall accumulation")
    elif daily > 10:
        score += 2
        reasons.append("Moderate daily rainfall accumulation")

    if humidity > 90:
        score += 1
        reasons.append("Very high humidity")

    if temperature is not None and (temperature < 5 or temperature > 40):
        score += 1
        reasons.append("Extreme temperature conditions")

    level = "minimal"
    for threshold, label in RISK_LEVELS:
        if score >= threshold:
            level = label
            break
    if level == "minimal":
        reasons = ["No significant weather-related flood risk detected"]

    return {
        "level": level,
        "score": score,
        "reasons": reasons,
        "weather": conditions,
        "assessmentTime": datetime.now(timezone.utc).isoformat(),
    }


def weather_alerts(assessment: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Turn a flood-risk assessment into zero or one alert."""
    level = assessment.get("level")
    template = ALERTS.get(level)
    if not template:
        return []
    return [{**template, "severity": level, "reasons": assessment.get("reasons", [])}]

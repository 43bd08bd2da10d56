# analysis_service.py
# ------------------------------------------------------------
# This module turns a DogInfo into an AssessmentResult.
#
# It:
#   - builds the prompt and calls Gemini (directly, with the
#     user's own key) or posts the profile to our relay server
#   - parses the model's reply as strict JSON (no repair)
#   - fills in defaults for anything the model left out and
#     clamps confidence to 0-100
#   - always echoes the caller's own DogInfo, not the model's
#
# Both analyzers share one contract: analyze(dog_info).
# Which one is used is decided by Settings.analysis_mode.
# ------------------------------------------------------------

import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import requests

from config import Settings
from credential_store import CredentialStore
from errors import AnalysisError, ConfigurationError, FormatError, RelayError, TransportError
from gemini_client import GeminiClient, build_session
from models import (
    PRIORITIES,
    RISK_LEVELS,
    AssessmentResult,
    DogInfo,
    HealthCondition,
    HealthPrediction,
    SupplementRecommendation,
)
from prompt_builder import build_prompt

logger = logging.getLogger(__name__)

DEFAULT_RISK_LEVEL = "moderate"
DEFAULT_CONFIDENCE = 70

# Path of the relay endpoint, relative to RELAY_URL
RELAY_PATH = "/functions/analyze-dog-health"

# The relay answers 500 for analysis failures; retrying those would re-run
# the provider call, so only gateway-level statuses are retried.
RELAY_RETRY_STATUSES = (502, 503, 504)


# ------------------------------------------------------------
# Parsing + normalization
# ------------------------------------------------------------

def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_model_json(text: str) -> Dict[str, Any]:
    """
    Parse the model's reply text as a JSON object.

    Raises:
        FormatError: if the text is not valid JSON or not an object.
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError) as e:
        logger.debug("Failed to parse AI response: %r", text)
        raise FormatError("Invalid response format from AI service", raw_text=text or "") from e

    if not isinstance(data, dict):
        logger.debug("AI response is JSON but not an object: %r", text)
        raise FormatError("Invalid response format from AI service", raw_text=text)
    return data


def clamp_confidence(value: Any) -> float:
    """Default missing/non-numeric confidence to 70, then clamp to 0-100."""
    if value is None or isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
    if value != value:  # NaN
        return DEFAULT_CONFIDENCE
    return min(max(value, 0), 100)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _texts(value: Any) -> Tuple[str, ...]:
    return tuple(str(v) for v in _as_list(value) if v is not None)


def _number(value: Any, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return default
    return value if math.isfinite(value) else default


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _condition(item: Dict[str, Any]) -> HealthCondition:
    return HealthCondition(
        name=str(item.get("name") or ""),
        probability=_number(item.get("probability")),  # passed through unclamped
        description=str(item.get("description") or ""),
        prevention=_texts(item.get("prevention")),
    )


def _supplement(item: Dict[str, Any]) -> SupplementRecommendation:
    priority = str(item.get("priority") or "").lower()
    return SupplementRecommendation(
        name=str(item.get("name") or ""),
        purpose=str(item.get("purpose") or ""),
        dosage=str(item.get("dosage") or ""),
        frequency=str(item.get("frequency") or ""),
        benefits=_texts(item.get("benefits")),
        precautions=_texts(item.get("precautions")),
        priority=priority if priority in PRIORITIES else "recommended",
    )


def normalize_result(raw: Dict[str, Any], dog_info: DogInfo) -> AssessmentResult:
    """
    Coerce a model (or relay) reply into an AssessmentResult.

    Missing pieces get defaults:
        riskLevel -> "moderate", lists -> empty, vetVisitRecommended -> False,
        confidence -> 70 (then clamped to 0-100).

    The dogInfo in the reply is ignored; dog_info is echoed instead.
    Running the output's to_dict() through here again yields an equal result.
    """
    predictions = raw.get("healthPredictions")
    if not isinstance(predictions, dict):
        predictions = {}

    risk_level = str(predictions.get("riskLevel") or "").lower()
    if risk_level not in RISK_LEVELS:
        risk_level = DEFAULT_RISK_LEVEL

    conditions = tuple(
        _condition(c) for c in _as_list(predictions.get("conditions")) if isinstance(c, dict)
    )
    supplements = tuple(
        _supplement(s) for s in _as_list(raw.get("supplementRecommendations")) if isinstance(s, dict)
    )

    return AssessmentResult(
        dog_info=dog_info,
        health_predictions=HealthPrediction(risk_level=risk_level, conditions=conditions),
        supplement_recommendations=supplements,
        general_advice=_texts(raw.get("generalAdvice")),
        vet_visit_recommended=_flag(raw.get("vetVisitRecommended", False)),
        confidence=clamp_confidence(raw.get("confidence")),
    )


def build_relay_session(settings: Settings) -> requests.Session:
    """Session for relay calls: gateway statuses only, and no retry after a read timeout."""
    return build_session(settings, retry_statuses=RELAY_RETRY_STATUSES, retry_reads=False)


def run_provider_analysis(dog_info: DogInfo, client: GeminiClient) -> AssessmentResult:
    """Prompt -> provider -> strict JSON parse -> normalize."""
    prompt = build_prompt(dog_info)
    text = client.generate_content(prompt)
    raw = parse_model_json(text)
    return normalize_result(raw, dog_info)


# ------------------------------------------------------------
# Analyzers
# ------------------------------------------------------------

class HealthAnalyzer:
    """
    Common analyze() wrapper: taxonomy errors pass through untouched,
    anything else becomes AnalysisError("Analysis failed: ...").
    """

    def analyze(self, dog_info: DogInfo) -> AssessmentResult:
        try:
            result = self._analyze(dog_info)
        except AnalysisError as e:
            logger.warning("AI analysis error: %s", e)
            raise
        except Exception as e:
            logger.exception("AI analysis error")
            raise AnalysisError(f"Analysis failed: {e}") from e

        logger.info(
            "Analysis complete for %s: risk=%s confidence=%s",
            dog_info.name,
            result.health_predictions.risk_level,
            result.confidence,
        )
        return result

    def _analyze(self, dog_info: DogInfo) -> AssessmentResult:
        raise NotImplementedError


class DirectAnalyzer(HealthAnalyzer):
    """
    Calls Gemini from this process.

    credentials:
        Anything with get_credential() -> Optional[str]; a CredentialStore
        on the client, a FixedCredential on the relay server.
    """

    def __init__(self, credentials, settings: Settings, session: Optional[requests.Session] = None):
        self.credentials = credentials
        self.settings = settings
        self.session = session

    def _analyze(self, dog_info: DogInfo) -> AssessmentResult:
        api_key = self.credentials.get_credential()
        if not api_key:
            # Fail before any network traffic
            raise ConfigurationError("Google AI API key not found")

        if self.session is None:
            self.session = build_session(self.settings)

        client = GeminiClient(api_key, self.settings, session=self.session)
        return run_provider_analysis(dog_info, client)


class RelayAnalyzer(HealthAnalyzer):
    """Posts the profile to the relay server, which holds the provider key."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session

    def _analyze(self, dog_info: DogInfo) -> AssessmentResult:
        if not self.settings.relay_url:
            raise ConfigurationError("RELAY_URL is not set")

        if self.session is None:
            self.session = build_relay_session(self.settings)

        headers = {"Content-Type": "application/json"}
        if self.settings.relay_token:
            headers["Authorization"] = f"Bearer {self.settings.relay_token}"

        url = f"{self.settings.relay_url}{RELAY_PATH}"
        logger.info("Forwarding analysis for %s to relay", dog_info.name)
        try:
            resp = self.session.post(
                url,
                json={"dogInfo": dog_info.to_dict()},
                headers=headers,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Relay request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        # An explicit error from the relay wins over the status code
        if isinstance(data, dict) and data.get("error"):
            raise RelayError(str(data["error"]))

        if not resp.ok:
            reason = resp.reason or f"HTTP {resp.status_code}"
            raise TransportError(f"Relay request failed: {reason}", status_code=resp.status_code)

        if not isinstance(data, dict):
            raise FormatError("Invalid response format from relay", raw_text=resp.text)

        # Re-normalize against our own DogInfo; the relay's echo is not trusted
        return normalize_result(data, dog_info)


def create_analyzer(settings: Settings, credentials: Optional[CredentialStore] = None) -> HealthAnalyzer:
    """Pick the analyzer that matches settings.analysis_mode."""
    if settings.analysis_mode == "relay":
        return RelayAnalyzer(settings)
    if credentials is None:
        credentials = CredentialStore(settings.credential_file)
    return DirectAnalyzer(credentials, settings)

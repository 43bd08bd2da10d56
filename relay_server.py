# relay_server.py
# ------------------------------------------------------------
# Operator-run relay: holds the Google AI key server-side so end
# users never see it.
#
# POST /functions/analyze-dog-health
#   body    {"dogInfo": {...}}
#   auth    Authorization: Bearer <RELAY_TOKEN> (when configured)
#   200     normalized AssessmentResult JSON
#   401     {"error": "Unauthorized"} for a bad token
#   500     {"error": "Analysis failed: ..."} for bad input or a failed analysis
#
# GET /health -> {"status": "ok"}
# ------------------------------------------------------------

import hmac
import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from analysis_service import RELAY_PATH, DirectAnalyzer, HealthAnalyzer
from config import Settings, load_settings
from credential_store import FixedCredential
from errors import AnalysisError
from models import DogInfo

logger = logging.getLogger(__name__)


def _authorized(settings: Settings) -> bool:
    """Check the bearer token; an unset RELAY_TOKEN disables the check."""
    if not settings.relay_token:
        return True
    header = request.headers.get("Authorization", "")
    expected = f"Bearer {settings.relay_token}"
    return hmac.compare_digest(header.encode("utf-8"), expected.encode("utf-8"))


def create_app(settings: Optional[Settings] = None, analyzer: Optional[HealthAnalyzer] = None) -> Flask:
    """
    Build the relay Flask app.

    analyzer defaults to a DirectAnalyzer using settings.google_api_key.
    """
    settings = settings or load_settings()
    if analyzer is None:
        analyzer = DirectAnalyzer(FixedCredential(settings.google_api_key), settings)

    if not settings.relay_token:
        logger.warning("RELAY_TOKEN is not set; the relay accepts unauthenticated requests")
    if not settings.google_api_key:
        logger.warning("GOOGLE_AI_API_KEY is not set; every analysis will fail")

    app = Flask(__name__)
    CORS(app, origins="*", send_wildcard=True)  # browsers send a preflight before the POST

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route(RELAY_PATH, methods=["POST"])
    def analyze_dog_health():
        if not _authorized(settings):
            return jsonify({"error": "Unauthorized"}), 401

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or payload.get("dogInfo") is None:
            return jsonify({"error": "Analysis failed: dogInfo is required"}), 500

        try:
            dog_info = DogInfo.from_dict(payload["dogInfo"])
        except ValueError as e:
            return jsonify({"error": f"Analysis failed: invalid dogInfo: {e}"}), 500

        try:
            result = analyzer.analyze(dog_info)
        except AnalysisError as e:
            # Generic failures already carry the "Analysis failed:" prefix
            message = str(e) if type(e) is AnalysisError else f"Analysis failed: {e}"
            logger.error("Relay analysis failed for %s: %s", dog_info.name, message)
            return jsonify({"error": message}), 500

        return jsonify(result.to_dict())

    return app


def run(settings: Settings) -> None:
    app = create_app(settings)
    logger.info("Relay listening on %s:%s", settings.relay_host, settings.relay_port)
    app.run(host=settings.relay_host, port=settings.relay_port)

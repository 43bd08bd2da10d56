# gemini_client.py
# ------------------------------------------------------------
# Thin REST client for Google's Generative Language API.
#
# It:
#   - builds a requests.Session with bounded retries + backoff
#   - calls models/{model}:generateContent with our prompt
#   - lists models (used only to check that a key works)
#   - maps HTTP failures to TransportError
#
# The API key is sent in the x-goog-api-key header unless the
# settings ask for the ?key= query parameter.
# ------------------------------------------------------------

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import Settings
from errors import ConfigurationError, FormatError, TransportError

logger = logging.getLogger(__name__)

# Statuses worth another attempt; everything else fails immediately
RETRY_STATUSES = (429, 500, 502, 503, 504)


def build_session(settings: Settings, retry_statuses=RETRY_STATUSES, retry_reads: bool = True) -> requests.Session:
    """
    Return a requests.Session that retries transient failures with backoff.

    retry_reads=False stops a POST from being re-sent after a read timeout,
    when the server may already be working on the first one.
    """
    session = requests.Session()
    retry = Retry(
        total=settings.max_retries,
        read=None if retry_reads else 0,
        backoff_factor=settings.retry_backoff,
        status_forcelist=retry_statuses,
        allowed_methods=("GET", "POST"),
        raise_on_status=False,  # hand the last response back so we can report its status
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class GeminiClient:
    """Calls the provider on behalf of one API key."""

    def __init__(self, api_key: str, settings: Settings, session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigurationError("Google AI API key not found")
        self.api_key = api_key
        self.settings = settings
        self.session = session or build_session(settings)

    def _auth(self):
        """Return (headers, params) carrying the API key."""
        if self.settings.key_transport == "query":
            return {}, {"key": self.api_key}
        return {"x-goog-api-key": self.api_key}, {}

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers, params = self._auth()
        headers.update(kwargs.pop("headers", {}))
        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                timeout=self.settings.request_timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            # Connection refused, DNS failure, timeout after all retries...
            raise TransportError(f"API request failed: {e}") from e

        if not resp.ok:
            reason = resp.reason or f"HTTP {resp.status_code}"
            raise TransportError(f"API request failed: {reason}", status_code=resp.status_code)
        return resp

    def list_models(self) -> Dict[str, Any]:
        """GET /v1beta/models. Succeeds only for a live key."""
        url = f"{self.settings.api_base}/v1beta/models"
        return self._request("GET", url).json()

    def generate_content(self, prompt: str) -> str:
        """
        Send one prompt and return the text of the first candidate.

        Raises:
            TransportError: non-success HTTP status or network failure
            FormatError: the reply does not carry candidate text
        """
        url = f"{self.settings.api_base}/v1beta/models/{self.settings.model_name}:generateContent"
        body = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt}
                    ]
                }
            ],
            "generationConfig": {
                "temperature": self.settings.temperature,
                "maxOutputTokens": self.settings.max_output_tokens,
            },
        }

        logger.info("Requesting analysis from %s", self.settings.model_name)
        resp = self._request("POST", url, json=body, headers={"Content-Type": "application/json"})

        try:
            data = resp.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise FormatError("Invalid response format from AI service", raw_text=resp.text) from e

        return text

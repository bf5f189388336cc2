"""Gemini generateContent client used for shopper-facing car comparisons.

list_models() is a plain GET with no retry; it backs a diagnostic endpoint.

Transient overloads (HTTP 503) and transport errors are retried through
HttpClient.post_with_retry; any other non-2xx status is surfaced to the
caller as ExternalServiceError.
"""

import json
from typing import Any, Dict, List, Tuple

import httpx

from config import GeminiSettings
from errors import ExternalServiceError, ServiceUnavailableError
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
GENERATE_CONTENT = "generateContent"

COMPARISON_PROMPT = (
    "Compare these two cars concisely for a shopper. Highlight performance, "
    "fuel/energy efficiency, pricing, practicality, safety, and tech. "
    "Keep it under 200 words.\n\n"
    "Car A: {car_a}\n\n"
    "Car B: {car_b}"
)


def build_comparison_prompt(car_a: Dict[str, Any], car_b: Dict[str, Any]) -> str:
    return COMPARISON_PROMPT.format(
        car_a=json.dumps(car_a, indent=2, default=str),
        car_b=json.dumps(car_b, indent=2, default=str),
    )


def extract_text(data: Dict[str, Any]) -> str:
    """Pull the first candidate's text out of a generateContent response."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return "No comparison available"


class GeminiClient:
    def __init__(
        self,
        settings: GeminiSettings,
        http_client: HttpClient,
        backoff_seconds: float = 1.0,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._backoff = backoff_seconds

    @property
    def configured(self) -> bool:
        return bool(self._settings.gemini_api_key)

    def _require_key(self) -> Dict[str, str]:
        if not self.configured:
            raise ServiceUnavailableError("Gemini API key not configured")
        return {"key": self._settings.gemini_api_key}

    def _check(self, response: httpx.Response, message: str) -> Dict[str, Any]:
        if response.status_code >= 400:
            log.error(
                "gemini_error_response",
                status_code=response.status_code,
                response=response.text[:500],
            )
            raise ExternalServiceError(
                message, details={"status_code": response.status_code}
            )
        return response.json()

    async def generate(self, prompt: str) -> str:
        params = self._require_key()
        url = f"{_GEMINI_API_BASE}/{self._settings.gemini_model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            response = await self._http.post_with_retry(
                url,
                max_retries=self._settings.gemini_max_retries,
                backoff_seconds=self._backoff,
                json=payload,
                params=params,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TransportError as exc:
            log.error(
                "gemini_request_failed", error=str(exc), error_type=type(exc).__name__
            )
            raise ExternalServiceError(
                "Failed to compare cars after multiple attempts"
            ) from exc

        data = self._check(response, "Failed to get response from Gemini")
        log.info("gemini_request_succeeded", model=self._settings.gemini_model)
        return extract_text(data)

    async def compare_cars(self, car_a: Dict[str, Any], car_b: Dict[str, Any]) -> str:
        return await self.generate(build_comparison_prompt(car_a, car_b))

    async def list_models(self) -> Tuple[int, List[Dict[str, Any]]]:
        """Total model count and the models that support generateContent.

        Diagnostic only: lets an operator pick a value for GEMINI_MODEL.
        """
        params = self._require_key()
        try:
            response = await self._http.get(_GEMINI_API_BASE, params=params)
        except httpx.TransportError as exc:
            log.error(
                "gemini_request_failed", error=str(exc), error_type=type(exc).__name__
            )
            raise ExternalServiceError("Failed to list models") from exc

        models = self._check(response, "Failed to list models").get("models") or []
        usable = [
            model
            for model in models
            if GENERATE_CONTENT in (model.get("supportedGenerationMethods") or [])
        ]
        return len(models), usable

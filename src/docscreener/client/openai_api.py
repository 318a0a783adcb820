"""Chat-completions client used to summarize document segments."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

import requests

from docscreener.config import DEFAULT_API_BASE, DEFAULT_MAX_TOKENS, DEFAULT_SYSTEM_PROMPT

LOGGER = logging.getLogger(__name__)


class SummarizationError(Exception):
    """Raised when the summarization service cannot produce a usable response."""


def build_messages(system_prompt: str, prompt_prefix: str, text: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f"{prompt_prefix}\n{text}"},
    ]


def first_choice_content(payload: Any) -> str:
    """Return the first candidate's message content, or "" when there is none."""
    if not isinstance(payload, dict):
        raise SummarizationError("Completion response is not a JSON object")
    choices = payload.get("choices")
    if not choices:
        return ""
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise SummarizationError("Completion response has malformed choices")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise SummarizationError("Completion choice has malformed message")
    return message.get("content") or ""


def model_ids(payload: Any) -> List[str]:
    """Extract sorted model identifiers from a model-list response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise SummarizationError("Model list response has no data list")
    try:
        return sorted(item["id"] for item in payload["data"])
    except (KeyError, TypeError) as exc:
        raise SummarizationError(f"Model list entry is malformed: {exc}") from exc


class SummarizationClient:
    """Thin wrapper over an OpenAI-compatible HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        url = f"{self.api_base}/{endpoint}"
        try:
            response = self.session.request(
                method, url, headers=self.headers, timeout=self.timeout, **kwargs
            )
        except requests.exceptions.Timeout as exc:
            raise SummarizationError(f"Request to {url} timed out after {self.timeout}s") from exc
        except requests.exceptions.RequestException as exc:
            raise SummarizationError(f"Request to {url} failed: {exc}") from exc

        if response.status_code >= 400:
            raise SummarizationError(
                f"Service returned status {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise SummarizationError(f"Response from {url} is not valid JSON") from exc

    def list_models(self) -> List[str]:
        return model_ids(self._request("GET", "models"))

    def summarize(
        self,
        text: str,
        model_id: str,
        *,
        prompt_prefix: str = "",
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        payload = {
            "model": model_id,
            "messages": build_messages(system_prompt, prompt_prefix, text),
            "max_tokens": max_tokens,
        }
        start_time = time.time()
        result = first_choice_content(self._request("POST", "chat/completions", json=payload))
        LOGGER.debug(
            "Summarized %s chars into %s chars in %.2fs",
            len(text),
            len(result),
            time.time() - start_time,
        )
        return result

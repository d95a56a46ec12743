"""Gemini model client.

One instance per app, built in create_app() and shared by the moderation,
generation and refinement services. Two call shapes:

- generate_text(): free-form HTML output (generation, refinement)
- generate_json(): low-temperature, JSON-constrained output (moderation)

Transport failures (429, 5xx, network) are retried with exponential
backoff up to ``max_retries`` times, then surface as UpstreamTransportError.
Content problems are never retried here: they are deterministic for the
same prompt and belong to the parsers.
"""

import logging

import httpx
from google import genai
from google.genai import errors, types
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from onepage.errors import ContentContractError, InternalError, UpstreamTransportError

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}


def is_transient_error(exc):
    """True for errors that may succeed on retry."""
    if isinstance(exc, errors.APIError):
        return exc.code in TRANSIENT_STATUS_CODES
    return isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError))


def call_with_retries(fn, *, max_retries=3, backoff=2.0, label="model call"):
    """Run ``fn`` and retry transient failures.

    Delays grow as backoff, 2*backoff, 4*backoff... Non-transient errors
    propagate on the first attempt.
    """
    def log_retry(retry_state):
        logger.warning(
            f"{label} transient error ({retry_state.outcome.exception()}). "
            f"Retry {retry_state.attempt_number}/{max_retries} "
            f"after {retry_state.next_action.sleep:.1f}s..."
        )

    retrying = Retrying(
        retry=retry_if_exception(is_transient_error),
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff),
        before_sleep=log_retry,
    )
    try:
        return retrying(fn)
    except RetryError as e:
        last = e.last_attempt.exception()
        logger.error(f"{label} failed after {e.last_attempt.attempt_number} attempts: {last}")
        raise UpstreamTransportError() from last


class GeminiClient:
    """Thin wrapper over google-genai with retry and error mapping."""

    def __init__(self, api_key, model="gemini-2.0-flash", max_retries=3,
                 retry_backoff=2.0):
        if not api_key:
            raise ValueError("GEMINI_API_KEY not found in environment")

        self.model_name = model
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.client = genai.Client(api_key=api_key)

        logger.info(f"GeminiClient initialized with model: {model}")

    def generate_text(self, prompt, temperature=0.7, max_output_tokens=8192):
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        return self._generate(prompt, config, label="generate_text")

    def generate_json(self, prompt, temperature=0.1, max_output_tokens=256):
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )
        return self._generate(prompt, config, label="generate_json")

    def _generate(self, prompt, config, label):
        def call():
            return self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )

        try:
            response = call_with_retries(
                call,
                max_retries=self.max_retries,
                backoff=self.retry_backoff,
                label=f"Gemini {label}",
            )
        except errors.APIError as e:
            logger.error(f"Gemini {label} rejected: {e}", exc_info=True)
            raise InternalError() from e

        text = response.text
        if not text:
            # Blocked or empty candidates come back with no text at all.
            logger.error(f"Gemini {label} returned no text")
            raise ContentContractError()
        return text

"""Gemini client used as the fallback merchant/category classifier"""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from sms_ledger.config import settings
from sms_ledger.domain.exceptions import ClassifierError
from sms_ledger.infrastructure.observability.metrics import classifier_latency_histogram


class GeminiClient:
    """Client for the Gemini text generation API"""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ):
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.temperature = settings.gemini_temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.gemini_max_output_tokens
        self._client = genai.Client(api_key=self.api_key) if self.api_key else None

    async def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            ClassifierError: On missing credentials, API errors, network failures or empty output
        """
        if self._client is None:
            raise ClassifierError("GEMINI_API_KEY is not configured")

        try:
            with classifier_latency_histogram.time():
                response = await self._client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=genai_types.GenerateContentConfig(
                        temperature=self.temperature,
                        top_p=0.95,
                        top_k=40,
                        max_output_tokens=self.max_output_tokens,
                        response_mime_type="application/json",
                    ),
                )
        except genai_errors.APIError as e:
            raise ClassifierError(f"Gemini API error: {e.code}") from e
        except httpx.TimeoutException as e:
            raise ClassifierError("Gemini API timeout") from e
        except httpx.HTTPError as e:
            raise ClassifierError(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            raise ClassifierError("Gemini returned an empty response")
        return text

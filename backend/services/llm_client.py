"""LLM Client for Gemini on Vertex AI."""
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any
from google import genai
from google.genai import errors, types
import logging

from config import PROJECT_ID, LOCATION, GEMINI_MODEL

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class LLMClient:
    """Client for generating text with Gemini through the google-genai SDK."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        model: Optional[str] = None
    ):
        """
        Initialize LLM client against Vertex AI.

        Args:
            project_id: Google Cloud project (defaults to PROJECT_ID from environment)
            location: Vertex AI region (defaults to LOCATION from environment)
            model: Gemini model name (defaults to GEMINI_MODEL from environment)
        """
        self.project_id = project_id or PROJECT_ID
        if not self.project_id:
            raise ValueError("PROJECT_ID must be provided or set in environment")

        self.location = location or LOCATION
        self.model = model or GEMINI_MODEL
        self.client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.location
        )
        logger.info(f"LLMClient initialized: model={self.model}, location={self.location}")

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None
    ) -> LLMResponse:
        """
        Generate a response for a single prompt.

        Parameters left as None fall back to the model defaults.

        Args:
            prompt: Complete prompt text
            system_instruction: Optional system instruction
            temperature: Sampling temperature
            max_output_tokens: Maximum tokens to generate

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        start_time = time.time()
        model = self.model

        config = None
        if system_instruction is not None or temperature is not None or max_output_tokens is not None:
            config = types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=temperature,
                max_output_tokens=max_output_tokens
            )

        try:
            logger.debug(f"Generating response with model: {model}")

            response = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=config
            )
        except errors.APIError as e:
            raise self._api_error(e, model, start_time) from e
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            error = LLMError(
                code="UNKNOWN_ERROR",
                message=f"Unexpected error during generation: {str(e)}",
                details={
                    "model": model,
                    "latency_ms": latency_ms,
                    "original_error": str(e),
                    "error_type": type(e).__name__
                }
            )
            logger.error(
                f"Unexpected error: model={model}, latency={latency_ms}ms, error={e}",
                exc_info=True,
                extra={"error_code": error.code, "error_details": error.details}
            )
            raise LLMClientError(error) from e

        latency_ms = int((time.time() - start_time) * 1000)
        text = self._first_candidate_text(response)
        if text is None:
            error = LLMError(
                code="EMPTY_RESPONSE",
                message="The model returned no text.",
                details={
                    "model": model,
                    "latency_ms": latency_ms,
                    "original_error": "no candidate text in response"
                }
            )
            logger.error(f"Empty response: model={model}, latency={latency_ms}ms")
            raise LLMClientError(error)

        usage = getattr(response, "usage_metadata", None)
        tokens_input = (getattr(usage, "prompt_token_count", None) or 0) if usage else 0
        tokens_output = (getattr(usage, "candidates_token_count", None) or 0) if usage else 0

        logger.info(
            f"Generated response: model={model}, "
            f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
            f"latency={latency_ms}ms"
        )

        return LLMResponse(
            text=text,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            latency_ms=latency_ms,
            model_used=model
        )

    @staticmethod
    def _first_candidate_text(response) -> Optional[str]:
        """Return the text of the first part of the first candidate, if any."""
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return None
        content = candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text

    @staticmethod
    def _api_error(e: errors.APIError, model: str, start_time: float) -> LLMClientError:
        """Map a google-genai API error onto a structured client error."""
        latency_ms = int((time.time() - start_time) * 1000)
        details = {
            "model": model,
            "latency_ms": latency_ms,
            "status_code": e.code,
            "original_error": str(e)
        }

        if e.code == 429:
            code = "RATE_LIMIT_ERROR"
            message = "Rate limit exceeded. Please try again in a few moments."
            details["retry_after"] = 60
        elif e.code in (401, 403):
            code = "AUTHENTICATION_ERROR"
            message = "Authentication failed. Please check your Google Cloud credentials."
        else:
            code = "API_ERROR"
            message = f"Gemini API error: {str(e)}"

        error = LLMError(code=code, message=message, details=details)
        logger.error(
            f"{code}: model={model}, latency={latency_ms}ms, error={e}",
            exc_info=True,
            extra={"error_code": error.code, "error_details": error.details}
        )
        return LLMClientError(error)

import logging
import hashlib
import json
import math
import re
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError
from tenacity import retry, retry_if_exception_type, wait_exponential, stop_after_attempt

from app.config import settings
from app.domain.constants import MODEL_PRICING, DEFAULT_MODEL_PRICING
from app.domain.errors import AIResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class LLMResponse:
    """Text reply plus the usage the API reported for it."""
    text: str
    input_tokens: int
    output_tokens: int
    model: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def estimate_tokens(text: Optional[str]) -> int:
    """Rough token count: one token per four characters."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def calculate_cost(input_tokens: int, output_tokens: int, model: str) -> float:
    """
    USD cost of a call from per-million-token pricing.

    Unknown models are priced as gpt-4o.
    """
    input_rate, output_rate = MODEL_PRICING.get(model, DEFAULT_MODEL_PRICING)
    cost = (input_tokens * input_rate + output_tokens * output_rate) / 1_000_000
    return round(cost, 6)


def parse_json_response(text: str) -> Dict[str, Any]:
    """
    Parse a model reply as a JSON object.

    Accepts bare JSON, JSON wrapped in a Markdown code fence, or JSON
    surrounded by prose (the outermost {...} block is used).

    Raises:
        AIResponseError: If no JSON object can be parsed
    """
    if not text or not text.strip():
        raise AIResponseError("Empty response from model")

    candidate = text.strip()
    fence_match = _FENCE_RE.match(candidate)
    if fence_match:
        candidate = fence_match.group(1)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        json_match = _OBJECT_RE.search(candidate)
        if not json_match:
            raise AIResponseError("Model response did not contain JSON")
        try:
            parsed = json.loads(json_match.group())
        except json.JSONDecodeError as e:
            raise AIResponseError(f"Model response is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise AIResponseError("Model response JSON is not an object")
    return parsed


class OpenAIService:
    """Service for OpenAI chat completions used by the proposal pipeline"""

    def __init__(
        self,
        api_key: str,
        llm_model: str = "gpt-4o",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        client: AsyncOpenAI = None
    ):
        """
        Initialize OpenAI service with an async client

        Args:
            api_key: OpenAI API key
            llm_model: Default model for completions
            max_tokens: Default completion token limit
            temperature: Default sampling temperature
            client: Preconfigured AsyncOpenAI client (tests)
        """
        self.async_client = client or AsyncOpenAI(api_key=api_key)
        self.llm_model = llm_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        logger.info(f"OpenAI service initialized - LLM: {llm_model}")

    @retry(
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError, RateLimitError)),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        stop=stop_after_attempt(3),
        reraise=True
    )
    async def _create_completion(self, **kwargs):
        return await self.async_client.chat.completions.create(**kwargs)

    async def complete(
        self,
        message: str,
        system_prompt: str,
        *,
        model: Optional[str] = None,
        json_mode: bool = True,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> LLMResponse:
        """
        Send one user message under a system prompt.

        Args:
            message: User message
            system_prompt: System prompt
            model: Model override
            json_mode: If True, response will be a JSON object
            max_tokens: Completion token limit override
            temperature: Temperature override

        Returns:
            LLMResponse with text and token usage
        """
        kwargs = {
            "model": model or self.llm_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._create_completion(**kwargs)
        except Exception as e:
            logger.error(f"[OpenAIService] Completion failed ({kwargs['model']}): {str(e)}")
            raise

        text = response.choices[0].message.content or ""
        usage = response.usage
        result = LLMResponse(
            text=text,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            model=getattr(response, "model", None) or kwargs["model"],
        )
        logger.info(
            f"[OpenAIService] Completed with {result.output_tokens} output tokens "
            f"({result.input_tokens} input) on {result.model}"
        )
        return result


class CachedOpenAIService:
    """
    Read-through response cache in front of OpenAIService.

    Identical (message, system prompt) pairs are answered from the
    llm_cache collection until the entry expires. Cache errors are logged
    and the call goes to the model.
    """

    def __init__(self, service: OpenAIService, cache_repo, ttl_hours: int = 24, enabled: bool = True):
        self.service = service
        self.cache_repo = cache_repo
        self.ttl_hours = ttl_hours
        self.enabled = enabled

    @staticmethod
    def cache_key(message: str, system_prompt: str) -> str:
        digest = hashlib.sha256(f"{message}|{system_prompt}".encode()).hexdigest()
        return f"llm:message:{digest[:16]}"

    async def complete(
        self,
        message: str,
        system_prompt: str,
        *,
        use_cache: bool = True,
        **kwargs
    ) -> LLMResponse:
        if not (self.enabled and use_cache):
            return await self.service.complete(message, system_prompt, **kwargs)

        key = self.cache_key(message, system_prompt)
        try:
            cached = self.cache_repo.get_response(key)
            if cached:
                logger.info(f"[LLMCache] Hit {key}")
                return LLMResponse(**cached)
        except Exception as e:
            logger.error(f"[LLMCache] Read failed for {key}: {e}")

        result = await self.service.complete(message, system_prompt, **kwargs)

        try:
            self.cache_repo.set_response(key, result.model, asdict(result), ttl_hours=self.ttl_hours)
        except Exception as e:
            logger.error(f"[LLMCache] Write failed for {key}: {e}")

        return result


# Singleton instance
_llm_service: Optional[CachedOpenAIService] = None


def get_llm_service() -> CachedOpenAIService:
    """Get singleton cached LLM service configured from settings."""
    global _llm_service
    if _llm_service is None:
        from app.infra.mongodb.repositories import get_llm_cache_repo
        _llm_service = CachedOpenAIService(
            OpenAIService(
                api_key=settings.OPENAI_API_KEY,
                llm_model=settings.OPENAI_LLM_MODEL,
                max_tokens=settings.OPENAI_MAX_TOKENS,
                temperature=settings.OPENAI_TEMPERATURE,
            ),
            get_llm_cache_repo(),
            ttl_hours=settings.LLM_CACHE_TTL_HOURS,
            enabled=settings.LLM_CACHE_ENABLED,
        )
    return _llm_service

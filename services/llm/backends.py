"""
Generation backend adapters.

Each adapter turns a GenerationRequest into its provider's wire shape and
normalizes the answer into a GenerationResponse. Adapters do not retry and do
not enforce timeouts; the orchestrator owns both.

- OpenAICompatibleBackend: OpenAI, Gemini and DeepSeek through the openai SDK
  (Gemini and DeepSeek expose OpenAI-compatible chat completion endpoints)
- PerplexityBackend: Perplexity chat completions over httpx
- AnthropicBackend: Anthropic messages API through the anthropic SDK
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from application.exceptions import BackendError, BackendResponseError
from models.generation import BackendName, GenerationRequest, GenerationResponse

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7

# Appended to the user prompt for backends without a strict JSON mode
JSON_ONLY_INSTRUCTION = (
    "\n\nIMPORTANT: Output ONLY the JSON object. Do not wrap in markdown code blocks. "
    "Start with '{' and end with '}'."
)


class GenerationBackend(Protocol):
    """Uniform call interface implemented by every backend adapter."""

    name: BackendName

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        ...


def _require_content(backend: BackendName, content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise BackendResponseError(backend.value, "empty response content")
    return content.strip()


class OpenAICompatibleBackend:
    """
    Backend for providers speaking the OpenAI chat completions protocol.

    Args:
        name: Backend this adapter answers for
        client: Configured AsyncOpenAI client (base URL selects the provider)
        model: Default model id
        supports_json_mode: Whether response_format=json_object is honoured
    """

    def __init__(
        self,
        name: BackendName,
        client: AsyncOpenAI,
        model: str,
        supports_json_mode: bool = True,
    ):
        self.name = name
        self._client = client
        self._model = model
        self._supports_json_mode = supports_json_mode

    def _messages(self, request: GenerationRequest) -> List[Dict[str, str]]:
        user_prompt = request.user_prompt
        if request.wants_json and not self._supports_json_mode:
            user_prompt += JSON_ONLY_INSTRUCTION
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return messages

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        kwargs: Dict[str, Any] = {
            "model": request.model or self._model,
            "messages": self._messages(request),
            "max_tokens": request.max_tokens,
            "temperature": (
                request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE
            ),
        }
        if request.wants_json and self._supports_json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**kwargs)

        if not response.choices:
            raise BackendResponseError(self.name.value, "no choices in response")
        choice = response.choices[0]
        return GenerationResponse(
            content=_require_content(self.name, choice.message.content),
            backend=self.name,
            finish_reason=choice.finish_reason,
        )


class PerplexityBackend:
    """Perplexity chat completions over plain HTTP."""

    API_URL = "https://api.perplexity.ai/chat/completions"
    DEFAULT_MODEL = "sonar"
    # Perplexity recommends a lower temperature for factual queries
    DEFAULT_TEMPERATURE = 0.2

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.name = BackendName.PERPLEXITY
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._http_client = http_client

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _payload(self, request: GenerationRequest) -> Dict[str, Any]:
        user_prompt = request.user_prompt
        if request.wants_json:
            user_prompt += JSON_ONLY_INSTRUCTION
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return {
            "model": request.model or self._model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": (
                request.temperature
                if request.temperature is not None
                else self.DEFAULT_TEMPERATURE
            ),
        }

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        return await client.post(self.API_URL, json=payload, headers=self._get_headers())

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        payload = self._payload(request)

        if self._http_client is not None:
            response = await self._post(self._http_client, payload)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await self._post(client, payload)

        if response.status_code >= 400:
            raise BackendError(
                self.name.value,
                f"Perplexity API error: {response.status_code} - {response.text}",
            )

        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            raise BackendResponseError(self.name.value, "no choices in response")
        return GenerationResponse(
            content=_require_content(self.name, (choices[0].get("message") or {}).get("content")),
            backend=self.name,
            finish_reason=choices[0].get("finish_reason"),
        )


class AnthropicBackend:
    """Anthropic messages API through the anthropic SDK."""

    def __init__(self, client: AsyncAnthropic, model: str):
        self.name = BackendName.ANTHROPIC
        self._client = client
        self._model = model

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        user_prompt = request.user_prompt
        if request.wants_json:
            user_prompt += JSON_ONLY_INSTRUCTION

        temperature = request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE
        kwargs: Dict[str, Any] = {
            "model": request.model or self._model,
            "max_tokens": request.max_tokens,
            # Anthropic accepts 0.0-1.0
            "temperature": min(temperature, 1.0),
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if request.system_prompt:
            kwargs["system"] = request.system_prompt

        response = await self._client.messages.create(**kwargs)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return GenerationResponse(
            content=_require_content(self.name, text),
            backend=self.name,
            finish_reason=response.stop_reason,
        )

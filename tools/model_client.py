"""HTTP model-call collaborator for the node executor.

``ModelClient.execute(provider, model_id, request)`` posts an adapter-built
request to the provider's endpoint. It never raises to the caller: every
failure comes back as ``{"error": True, "status", "message", "details"}``
so the executor can turn it into a node-level ProviderError.

Credentials are never stored here. They are fetched per call through the
injected ``get_api_key(user_id, provider, model)`` callable.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# ``details.reason`` of the 401 payload returned when no user is signed in
NO_SESSION = "no_session"

ApiKeyLookup = Callable[[str, str, str], Union[Optional[str], Awaitable[Optional[str]]]]


@dataclass(frozen=True)
class ProviderEndpoint:
    """Where and how to post one provider's requests."""
    url: str
    auth: str = "bearer"  # "bearer", "x-api-key" or "query"
    extra_headers: tuple[tuple[str, str], ...] = ()


PROVIDER_ENDPOINTS: dict[str, ProviderEndpoint] = {
    "openai": ProviderEndpoint("https://api.openai.com/v1/chat/completions"),
    "anthropic": ProviderEndpoint(
        "https://api.anthropic.com/v1/messages",
        auth="x-api-key",
        extra_headers=(("anthropic-version", "2023-06-01"),),
    ),
    "google gemini": ProviderEndpoint(
        "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        auth="query",
    ),
    "mistral": ProviderEndpoint("https://api.mistral.ai/v1/chat/completions"),
    "cohere": ProviderEndpoint("https://api.cohere.ai/v1/chat"),
    "xai": ProviderEndpoint("https://api.x.ai/v1/chat/completions"),
    "deepseek": ProviderEndpoint("https://api.deepseek.com/v1/chat/completions"),
    "perplexity": ProviderEndpoint("https://api.perplexity.ai/chat/completions"),
    "together ai": ProviderEndpoint("https://api.together.xyz/v1/chat/completions"),
}
PROVIDER_ENDPOINTS["google"] = PROVIDER_ENDPOINTS["google gemini"]


def error_payload(status: int, message: str, details: Any = None) -> dict:
    return {"error": True, "status": status, "message": message, "details": details}


def _provider_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
    return None


class ModelClient:
    """Async HTTP client that executes adapter-built requests."""

    def __init__(
        self,
        get_api_key: ApiKeyLookup,
        user_id: Optional[str] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.get_api_key = get_api_key
        self.user_id = user_id
        self._client = http_client or httpx.AsyncClient(timeout=self.settings.request_timeout)
        self._owns_client = http_client is None
        self.total_calls = 0

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ModelClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _lookup_key(self, provider_name: str, model_id: str) -> Optional[str]:
        key = self.get_api_key(self.user_id, provider_name, model_id)
        if inspect.isawaitable(key):
            key = await key
        return key or None

    async def execute(self, provider_name: str, model_id: str, request: dict) -> dict:
        """Post ``request`` to the provider and return its JSON body or an error payload."""
        if not self.user_id:
            return error_payload(401, "Unauthorized. Please sign in to execute AI models.", {"reason": NO_SESSION})

        endpoint = PROVIDER_ENDPOINTS.get(provider_name.lower())
        if endpoint is None:
            return error_payload(400, f"Unsupported provider: {provider_name}")

        try:
            api_key = await self._lookup_key(provider_name, model_id)
        except Exception as e:
            logger.error("API key lookup failed for %s/%s: %s", provider_name, model_id, e)
            return error_payload(500, f"API key lookup failed for {provider_name}: {e}")
        if not api_key:
            return error_payload(
                404,
                f"No API key found for {provider_name} model: {model_id}. "
                "Please add your API key in the API Keys page.",
            )

        url = endpoint.url.format(model=model_id)
        headers = {"Content-Type": "application/json", **dict(endpoint.extra_headers)}
        params = {}
        body = dict(request)
        if endpoint.auth == "bearer":
            headers["Authorization"] = f"Bearer {api_key}"
        elif endpoint.auth == "x-api-key":
            headers["x-api-key"] = api_key
        else:
            params["key"] = api_key
            body.pop("model", None)
        if provider_name.lower() == "together ai":
            body.setdefault("model", model_id)

        self.total_calls += 1
        logger.debug("Model call: provider=%s, model=%s, url=%s", provider_name, model_id, url)
        try:
            response = await self._client.post(url, json=body, headers=headers, params=params)
        except httpx.TimeoutException as e:
            logger.warning("%s request timed out: %s", provider_name, e)
            return error_payload(504, f"{provider_name} API error: request timed out")
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", provider_name, e)
            return error_payload(502, f"{provider_name} API error: {e}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            message = _provider_message(data) or response.text[:200] or "Unknown error"
            logger.warning("%s returned HTTP %d: %s", provider_name, response.status_code, message)
            return error_payload(response.status_code, f"{provider_name} API error: {message}", data)

        if data is None:
            return error_payload(502, f"{provider_name} API error: response was not JSON")

        logger.debug("Model call complete: provider=%s, model=%s", provider_name, model_id)
        return data

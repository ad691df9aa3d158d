"""Image generation dispatch.

This service turns a prompt into a single image URL by calling one of the
supported text-to-image providers:

- OpenAI (DALL·E 3): square 1024x1024, URL at ``data[0].url``
- GetImg.ai: portrait 512x768 with a negative prompt and fixed sampling
  parameters, URL at ``output_url``

The provider is resolved once from the dealer's model label. Only the exact
GetImg.ai label selects GetImg; every other label falls back to OpenAI.

Each call makes exactly one request. There is no retry, cache or
deduplication; failures are raised to the caller as typed errors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from dealer_studio.core.config import Settings, get_settings
from dealer_studio.core.exceptions import (
    ConfigurationError,
    InvalidImageUrl,
    InvalidRequest,
    ProviderHttpError,
    ProviderResponseError
)
from dealer_studio.core.logging import get_logger
from dealer_studio.models.domain.generation import GenerationRequest
from dealer_studio.utils.url_helpers import is_absolute_url

logger = get_logger(__name__)

GETIMG_MODEL_LABEL = "GetImg.ai"
OPENAI_MODEL_LABEL = "DALL·E 3"

NEGATIVE_PROMPT = "ugly, deformed, disfigured, poor quality, low quality"

# Provider error bodies can be large HTML pages
MAX_LOGGED_BODY = 2000


class ImageProvider(str, Enum):
    OPENAI = "openai"
    GETIMG = "getimg"

    @classmethod
    def resolve(cls, model_identifier: Optional[str]) -> "ImageProvider":
        if model_identifier == GETIMG_MODEL_LABEL:
            return cls.GETIMG
        return cls.OPENAI


def _openai_body(prompt: str) -> Dict[str, Any]:
    return {
        "model": "dall-e-3",
        "prompt": prompt,
        "n": 1,
        "size": "1024x1024",
        "quality": "standard",
        "response_format": "url",
    }


def _getimg_body(prompt: str) -> Dict[str, Any]:
    return {
        "prompt": prompt,
        "negative_prompt": NEGATIVE_PROMPT,
        "width": 512,
        "height": 768,
        "steps": 30,
        "guidance": 7.5,
        "model_name": "realistic-vision-v5.1",
        "scheduler": "dpmsolver++",
    }


def _openai_url(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    return data[0].get("url")


def _getimg_url(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    return payload.get("output_url")


@dataclass(frozen=True)
class ProviderSpec:
    """How to talk to one provider."""
    display_name: str
    credential_setting: str
    endpoint_setting: str
    build_body: Callable[[str], Dict[str, Any]]
    extract_url: Callable[[Any], Optional[str]]


PROVIDERS: Dict[ImageProvider, ProviderSpec] = {
    ImageProvider.OPENAI: ProviderSpec(
        display_name="OpenAI",
        credential_setting="OPENAI_API_KEY",
        endpoint_setting="OPENAI_IMAGES_URL",
        build_body=_openai_body,
        extract_url=_openai_url,
    ),
    ImageProvider.GETIMG: ProviderSpec(
        display_name="GetImg.ai",
        credential_setting="GETIMG_API_KEY",
        endpoint_setting="GETIMG_TEXT_TO_IMAGE_URL",
        build_body=_getimg_body,
        extract_url=_getimg_url,
    ),
}


class ImageGenerationService:
    """Dispatch generation requests to the resolved provider."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.settings.PROVIDER_TIMEOUT_SECONDS
        )

    async def generate(
        self,
        prompt: str,
        model: str,
        api_key: Optional[str] = None,
        reference_image_url: Optional[str] = None
    ) -> str:
        """Generate one image and return its absolute URL."""
        return await self.dispatch(GenerationRequest(
            prompt=prompt,
            model=model,
            api_key=api_key,
            reference_image_url=reference_image_url
        ))

    async def dispatch(self, request: GenerationRequest) -> str:
        if not request.prompt or not request.prompt.strip():
            raise InvalidRequest("Prompt is required")

        provider = ImageProvider.resolve(request.model)
        spec = PROVIDERS[provider]
        if provider is ImageProvider.OPENAI and request.model != OPENAI_MODEL_LABEL:
            logger.info(
                "Unsupported model, defaulting to OpenAI",
                requested_model=request.model
            )

        api_key = request.api_key or getattr(self.settings, spec.credential_setting)
        if not api_key:
            logger.error(
                "Provider credential not configured",
                provider=provider.value,
                setting=spec.credential_setting
            )
            raise ConfigurationError(
                f"{spec.display_name} API key not configured",
                details={"provider": provider.value, "setting": spec.credential_setting}
            )

        if request.reference_image_url:
            # Neither text-to-image endpoint accepts a reference image
            logger.debug(
                "Reference image ignored by provider",
                provider=provider.value,
                reference_image_url=request.reference_image_url
            )

        logger.info(
            "Generating image",
            provider=provider.value,
            requested_model=request.model,
            prompt_length=len(request.prompt)
        )
        payload = await self._post(provider, spec, api_key, spec.build_body(request.prompt))

        image_url = spec.extract_url(payload)
        if not image_url or not isinstance(image_url, str):
            logger.error(
                "Invalid response format from provider",
                provider=provider.value,
                payload=payload
            )
            raise ProviderResponseError(spec.display_name, payload)

        if not is_absolute_url(image_url):
            logger.error("Invalid image URL generated", provider=provider.value, url=image_url)
            raise InvalidImageUrl(image_url)

        logger.info("Image generated", provider=provider.value, image_url=image_url)
        return image_url

    async def _post(
        self,
        provider: ImageProvider,
        spec: ProviderSpec,
        api_key: str,
        body: Dict[str, Any]
    ) -> Any:
        endpoint = getattr(self.settings, spec.endpoint_setting)
        try:
            response = await self.client.post(
                endpoint,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                }
            )
        except httpx.HTTPError as e:
            logger.error("Provider request failed", error=e, provider=provider.value)
            raise ProviderHttpError(spec.display_name, None, str(e)) from e

        if not response.is_success:
            logger.error(
                "Provider returned error status",
                provider=provider.value,
                status_code=response.status_code,
                body=response.text[:MAX_LOGGED_BODY]
            )
            raise ProviderHttpError(spec.display_name, response.status_code, response.text)

        try:
            return response.json()
        except ValueError:
            logger.error(
                "Provider returned non-JSON body",
                provider=provider.value,
                body=response.text[:MAX_LOGGED_BODY]
            )
            raise ProviderResponseError(spec.display_name, response.text) from None

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

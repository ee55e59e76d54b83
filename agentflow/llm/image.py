"""
Image Generation Port

Boundary used by ImageAgent: a prompt goes in, an image URL comes out.
"""

import logging
from abc import ABC, abstractmethod

from agentflow.errors import ModelInvocationError

logger = logging.getLogger(__name__)


class ImageProvider(ABC):
    """Image generation boundary."""

    @abstractmethod
    async def generate(self, prompt: str, model: str | None = None) -> str:
        """
        Generate one image.

        Returns:
            URL of the generated image

        Raises:
            ModelInvocationError: If generation fails
        """
        ...


class OpenAIImageProvider(ImageProvider):
    """ImageProvider using the OpenAI images API."""

    def __init__(
        self,
        model: str = "dall-e-3",
        size: str = "1024x1024",
        client=None,
    ):
        """
        Args:
            model: Default image model
            size: Image size accepted by the API
            client: AsyncOpenAI client (created from OPENAI_API_KEY if omitted)
        """
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI()
        self._client = client
        self._model = model
        self._size = size

    async def generate(self, prompt: str, model: str | None = None) -> str:
        model = model or self._model
        logger.info(f"Generating image with {model}")
        try:
            response = await self._client.images.generate(
                model=model,
                prompt=prompt,
                size=self._size,
                n=1,
            )
        except Exception as e:
            raise ModelInvocationError(f"Image model {model} failed: {e}") from e
        if not response.data or not response.data[0].url:
            raise ModelInvocationError(f"Image model {model} returned no image")
        return response.data[0].url

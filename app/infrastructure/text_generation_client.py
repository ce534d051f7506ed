"""
Infrastructure layer: chat-completion client used to describe trees.
"""
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.infrastructure.api_constants import AIEndpoints
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.http_client import BaseAPIClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful botanical expert."


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: str


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """Subset of the chat-completion response we read."""
    choices: List[ChatChoice]


class TextGenerationClient(BaseAPIClient):
    """Send one prompt, get one block of text back."""

    service_name = "text generation"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url if base_url is not None else settings.ai_api_url,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.ai_api_key
        self.model = model or settings.ai_model

    async def complete(self, prompt: str, system_prompt: str = SYSTEM_PROMPT) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: User prompt
            system_prompt: System instruction

        Returns:
            Content of the first choice

        Raises:
            ServiceNotConfiguredError: If no API key is configured
            ExternalServiceError: If the call fails or the answer is empty
        """
        if not self.api_key:
            raise ServiceNotConfiguredError(self.service_name)

        data = await self._make_request(
            "POST",
            AIEndpoints.CHAT_COMPLETIONS,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": settings.ai_max_tokens,
            },
        )
        try:
            response = ChatCompletionResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected chat-completion body: {data}")
            raise ExternalServiceError(
                "text generation returned an unexpected body", service=self.service_name
            ) from e
        if not response.choices:
            raise ExternalServiceError(
                "text generation returned no choices", service=self.service_name
            )
        return response.choices[0].message.content

"""
Image Agent

A single-round node that renders its prompt template and asks an image
provider for a picture. The output is the image URL.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentflow.agent.node import Node, NodeType
from agentflow.errors import AgentFlowError, ModelInvocationError
from agentflow.llm.domain import Message
from agentflow.prompt import render

if TYPE_CHECKING:
    from agentflow.llm import ImageProvider

logger = logging.getLogger(__name__)


class ImageAgent(Node):
    """Image-generating node."""

    node_type = NodeType.IMAGE_AGENT

    def __init__(
        self,
        name: str,
        image_provider: "ImageProvider",
        description: str = "",
        prompt_template: str | None = None,
        model: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(name, description=description, **kwargs)
        self.image_provider = image_provider
        self.prompt_template = prompt_template
        self.model = model

    async def _execute(self, query: str, variables: dict[str, Any]) -> str:
        self.round = 1
        prompt = render(self.prompt_template, {**variables, "query": query}) if self.prompt_template else query
        self.add_message(Message.user(prompt))
        try:
            url = await self.image_provider.generate(prompt, self.model)
        except AgentFlowError:
            raise
        except Exception as e:
            raise ModelInvocationError(
                "Image generation failed", node_id=self.id, round=self.round, text=str(e)
            ) from e
        logger.info(f"ImageAgent {self.name} generated {url}")
        self.add_message(Message.assistant(url, name=self.name))
        return url

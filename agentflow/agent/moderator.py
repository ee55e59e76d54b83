"""
Moderator

Default planning agent for moderated AUTO / HYBRID handoffs. It never
answers the task itself; it reads the roster and the conversation and
replies with a planning result naming the next speaker.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentflow.agent.agent import Agent

if TYPE_CHECKING:
    from agentflow.llm import LLMProvider

MODERATOR_NAME = "moderator"

DEFAULT_MODERATOR_PROMPT = """You moderate the agent group {{group_name}} ({{group_description}}).
Guide the conversation towards the goal and choose the next agent to speak.

Available agents, with their descriptions and functions:
{{group_agents}}

Read the conversation and decide whether the task is complete.
- If it is, reply with "next_step": "TERMINATE" and an empty "name".
- Otherwise choose the next agent from the list and write a detailed query
  for it, including all the context it needs.
- When re-planning after a failure, say why in the query.
Do the planning only; never perform the task yourself.

Reply with JSON only, for example:
{"planning": "1. find the orders; 2. summarize them", "next_step": "continue", "name": "order-agent", "query": "list the user's most recent orders"}
"""


def create_moderator(
    llm_provider: "LLMProvider",
    goal: str = "",
    model: str | None = None,
    name: str = MODERATOR_NAME,
) -> Agent:
    """
    Create a moderator agent.

    Args:
        llm_provider: Model invocation boundary
        goal: Task the group works towards, added to the system prompt
        model: Model override
        name: Agent name
    """
    system_prompt = DEFAULT_MODERATOR_PROMPT
    if goal:
        system_prompt = f"{system_prompt}\nThe goal is: {goal}\n"
    return Agent(
        name=name,
        llm_provider=llm_provider,
        description="Chooses the next agent of a group and writes its query",
        system_prompt=system_prompt,
        model=model,
    )

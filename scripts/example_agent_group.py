#!/usr/bin/env python3
"""
Agent Group Example

Demonstrates a researcher/writer agent group and the same group wired
into a persistable flow graph.

Workflow:
1. The researcher plans and hands the topic to the writer
2. The writer drafts and hands back to the researcher for review
3. The group stops at its max round (or when an agent answers TERMINATE)
4. The flow version is saved, reloaded and run from its start node

Requires an API key for the configured model (AGENTFLOW_LLM_MODEL,
default gpt-4o-mini with OPENAI_API_KEY).

Usage:
    python scripts/example_agent_group.py
"""

import asyncio
import logging

from dotenv import load_dotenv

from agentflow import Agent, AgentGroup, Flow, FlowEdgeType
from agentflow.config import settings_from_env
from agentflow.events import EventBus
from agentflow.flow import AgentFlowNode, AgentGroupFlowNode, EmptyFlowNode, HandoffFlowNode, LLMFlowNode
from agentflow.handoff import HandoffType
from agentflow.llm import LangChainLLMProvider, RetryingLLMProvider
from agentflow.persistence import create_persistence_provider

load_dotenv()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

PLANNING_FORMAT = """
Reply with a single JSON object and nothing else:
{"planning": "<your reasoning>", "name": "<next agent: researcher or writer>",
 "query": "<input for the next agent>", "next_step": "continue" or "TERMINATE"}
"""

RESEARCHER_PROMPT = "You are a researcher. Collect the key facts about the topic." + PLANNING_FORMAT
WRITER_PROMPT = "You are a writer. Turn the facts you receive into a short article." + PLANNING_FORMAT


# =============================================================================
# Example 1: Agent group in code
# =============================================================================

async def example_agent_group(llm_provider, event_bus: EventBus, max_round: int):
    logger.info("=" * 60)
    logger.info("Example 1: Agent Group")
    logger.info("=" * 60)

    group = AgentGroup(
        "newsroom",
        [
            Agent("researcher", llm_provider, system_prompt=RESEARCHER_PROMPT),
            Agent("writer", llm_provider, system_prompt=WRITER_PROMPT),
        ],
        max_round=max_round,
        event_bus=event_bus,
    )
    output = await group.run("The history of the printing press")

    for message in group.messages:
        logger.info(f"  [{message.name}] {message.content[:120]}")
    logger.info(f"Final output: {output}")
    logger.info(f"Tokens used: {sum(a.usage.total_tokens for a in group.agents)}")


# =============================================================================
# Example 2: The same group as a flow graph
# =============================================================================

def build_flow(llm_provider, event_bus: EventBus, persistence, max_round: int) -> Flow:
    flow = Flow(
        name="newsroom-flow",
        description="Researcher and writer producing a short article",
        llm_providers={"default": llm_provider},
        event_bus=event_bus,
        persistence_provider=persistence,
    )
    flow.add_node(EmptyFlowNode("start", "Start"))
    flow.add_node(AgentGroupFlowNode("newsroom", "newsroom", max_round=max_round))
    flow.add_node(HandoffFlowNode("handoff", "Handoff", handoff_type=HandoffType.AUTO))
    flow.add_node(AgentFlowNode("researcher", "researcher", system_prompt=RESEARCHER_PROMPT))
    flow.add_node(AgentFlowNode("writer", "writer", system_prompt=WRITER_PROMPT))
    flow.add_node(LLMFlowNode("llm", "Model"))

    flow.add_edge("start", "newsroom")
    for setting in ("researcher", "writer", "handoff"):
        flow.add_edge("newsroom", setting, FlowEdgeType.SETTING)
    for agent in ("researcher", "writer"):
        flow.add_edge(agent, "llm", FlowEdgeType.SETTING)
    return flow


async def example_flow(llm_provider, event_bus: EventBus, persistence, max_round: int):
    logger.info("=" * 60)
    logger.info("Example 2: Flow Graph")
    logger.info("=" * 60)

    flow = build_flow(llm_provider, event_bus, persistence, max_round)
    flow.check(strict=True)
    flow_id = await flow.save()
    logger.info(f"Saved flow {flow_id}")

    restored = await Flow(
        llm_providers={"default": llm_provider},
        event_bus=event_bus,
        persistence_provider=persistence,
    ).load(flow_id)
    output = await restored.run("start", "The history of the printing press")
    logger.info(f"Flow {restored.status.value}: {output}")


# =============================================================================
# Main
# =============================================================================

async def main():
    settings = settings_from_env()
    logger.info(f"Model: {settings.llm.model}, persistence: {settings.persistence.type.value}")

    llm_provider = RetryingLLMProvider(LangChainLLMProvider(settings.llm))
    persistence = create_persistence_provider(settings.persistence)

    event_bus = EventBus()
    event_bus.status_changed.subscribe(
        lambda e: logger.info(f"  {e.node_name}: {e.previous} -> {e.current}")
    )
    event_bus.node_output_updated.subscribe(
        lambda e: logger.info(f"  node {e.node_name} output: {(e.result or '')[:80]}")
    )

    try:
        await example_agent_group(llm_provider, event_bus, settings.max_round)
        print()
        await example_flow(llm_provider, event_bus, persistence, settings.max_round)
    finally:
        await persistence.close()

    logger.info("")
    logger.info("Examples complete!")


if __name__ == "__main__":
    asyncio.run(main())

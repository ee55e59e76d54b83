"""
Agent Module

Nodes of an orchestration: model-backed agents, image agents and agent
groups routed by handoff policies.
"""

from agentflow.agent.agent import Agent, ReflectionConfig
from agentflow.agent.group import AgentGroup
from agentflow.agent.image import ImageAgent
from agentflow.agent.moderator import create_moderator
from agentflow.agent.node import AgentPersistence, Node, NodeStatus, NodeType

__all__ = [
    "Node",
    "NodeStatus",
    "NodeType",
    "AgentPersistence",
    "Agent",
    "ReflectionConfig",
    "ImageAgent",
    "AgentGroup",
    "create_moderator",
]

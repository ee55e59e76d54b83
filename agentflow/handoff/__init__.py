"""
Handoff Module

Policies that route control between the agents of a group.
"""

from agentflow.handoff.handoff import (
    QUERY_VARIABLE,
    AutoHandoff,
    DirectHandoff,
    Handoff,
    HandoffDecision,
    HandoffType,
    HybridHandoff,
    ManualHandoff,
    create_handoff,
)

__all__ = [
    "QUERY_VARIABLE",
    "Handoff",
    "HandoffType",
    "HandoffDecision",
    "AutoHandoff",
    "DirectHandoff",
    "HybridHandoff",
    "ManualHandoff",
    "create_handoff",
]

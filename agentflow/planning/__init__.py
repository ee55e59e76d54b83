"""
Planning Module

Structured routing decisions parsed from agent output.
"""

from agentflow.planning.planning import DefaultPlanning, Planning
from agentflow.planning.result import TERMINATE, PlanningResult

__all__ = [
    "Planning",
    "DefaultPlanning",
    "PlanningResult",
    "TERMINATE",
]

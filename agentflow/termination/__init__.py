"""
Termination Module

Stop conditions for agent and group loops.
"""

from agentflow.termination.termination import (
    CotTermination,
    MaxRoundTermination,
    ScoreBasedTermination,
    StopWordTermination,
    Termination,
)

__all__ = [
    "Termination",
    "MaxRoundTermination",
    "StopWordTermination",
    "CotTermination",
    "ScoreBasedTermination",
]

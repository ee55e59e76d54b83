"""
Terminations

Pure predicates deciding whether a node's loop stops after a round.
A termination reads node state (round, max_round, output, planning)
and never writes it.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError

from agentflow.errors import TerminationError
from agentflow.planning.result import TERMINATE

if TYPE_CHECKING:
    from agentflow.agent import Node

logger = logging.getLogger(__name__)

COT_CONFIDENCE_THRESHOLD = 0.9


class Termination(ABC):
    """Stop condition for an execution loop."""

    @abstractmethod
    def terminate(self, node: "Node") -> bool:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MaxRoundTermination(Termination):
    """Stops once the round counter reaches the node's max round."""

    def terminate(self, node: "Node") -> bool:
        return node.round >= node.max_round


class StopWordTermination(Termination):
    """Stops when the node's latest planning result asks to stop."""

    def __init__(self, stop_word: str = TERMINATE):
        self.stop_word = stop_word.upper()

    def terminate(self, node: "Node") -> bool:
        planning = getattr(node, "planning", None)
        if planning is None or not planning.has_result:
            return False
        return planning.next_action().strip().upper() == self.stop_word


class CotStep(BaseModel):
    """One reasoning step of a chain-of-thought reply."""
    title: str | None = None
    answer: str | None = None
    next_action: str | None = None
    confidence: Any = None


class CotResult(BaseModel):
    steps: list[CotStep] = Field(default_factory=list)


class CotTermination(Termination):
    """
    Chain-of-thought termination.

    The node's output is a JSON object with an ordered `steps` list; the
    last step decides. Stops when any of, in order:
        a. the last step's next_action is "terminate"
        b. round >= max_round
        c. the last step's confidence exceeds 0.9
    The first rule that holds wins, so an explicit terminate stops the
    loop even when confidence is missing or malformed.

    Raises:
        TerminationError: If the output has no steps, or rule c must read
            a confidence that is not a number
    """

    def terminate(self, node: "Node") -> bool:
        last = self._last_step(node)
        if (last.next_action or "").strip().upper() == TERMINATE:
            logger.debug(f"{node.name} terminated by explicit action at round {node.round}")
            return True
        if node.round >= node.max_round:
            logger.debug(f"{node.name} terminated by max round {node.max_round}")
            return True
        return self._confidence(node, last) > COT_CONFIDENCE_THRESHOLD

    def _last_step(self, node: "Node") -> CotStep:
        try:
            result = CotResult.model_validate_json(node.output or "")
        except ValidationError as e:
            raise TerminationError(
                "Output is not a chain-of-thought result",
                node_id=node.id,
                round=node.round,
                text=node.output,
            ) from e
        if not result.steps:
            raise TerminationError(
                "Chain-of-thought result has no steps",
                node_id=node.id,
                round=node.round,
                text=node.output,
            )
        return result.steps[-1]

    def _confidence(self, node: "Node", step: CotStep) -> float:
        value = step.confidence
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise TerminationError(
                f"Step confidence {value!r} is not a number",
                node_id=node.id,
                round=node.round,
            )
        try:
            return float(value)
        except ValueError as e:
            raise TerminationError(
                f"Step confidence {value!r} is not a number",
                node_id=node.id,
                round=node.round,
            ) from e


_SCORE_PATTERNS = (
    re.compile(r"score[:\s]+(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)/10"),
)


class ScoreBasedTermination(Termination):
    """
    Stops when a self-evaluation reaches a target score.

    Reads a JSON object `{"score": int, "pass": bool}` embedded in the
    output, falling back to "score: N" or "N/10" in plain text.
    """

    def __init__(self, target_score: int, require_pass: bool = False):
        """
        Args:
            target_score: Score to reach, 1 to 10
            require_pass: Also require `"pass": true` in the JSON evaluation
        """
        if not 1 <= target_score <= 10:
            raise ValueError("Target score must be between 1 and 10")
        self.target_score = target_score
        self.require_pass = require_pass

    def terminate(self, node: "Node") -> bool:
        output = node.output
        if not output:
            return False

        evaluation = self._evaluation(output)
        if evaluation is not None:
            score = evaluation.get("score")
            passed = bool(evaluation.get("pass", False))
            if isinstance(score, (int, float)) and score >= self.target_score and (passed or not self.require_pass):
                logger.info(f"Score-based termination: score={score}/{self.target_score}, pass={passed}")
                return True
            return False

        if self.require_pass:
            return False
        for pattern in _SCORE_PATTERNS:
            match = pattern.search(output)
            if match and int(match.group(1)) >= self.target_score:
                logger.info(f"Score-based termination from text: score={match.group(1)}/{self.target_score}")
                return True
        return False

    def _evaluation(self, output: str) -> dict[str, Any] | None:
        start, end = output.find("{"), output.rfind("}")
        if start < 0 or end <= start:
            return None
        try:
            decoded = json.loads(output[start:end + 1])
        except json.JSONDecodeError:
            logger.debug("Output has no JSON evaluation, falling back to text")
            return None
        return decoded if isinstance(decoded, dict) and "score" in decoded else None

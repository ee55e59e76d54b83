"""Prompt template rendering."""

from agentflow.prompt.template import render

__all__ = ["render"]

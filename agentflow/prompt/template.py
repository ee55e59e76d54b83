"""
Prompt Templates

Mustache rendering for system prompts, user prompt templates and
reflection continue templates.
"""

import html
from typing import Any

from langchain_core.prompts import PromptTemplate


def render(template: str | None, variables: dict[str, Any] | None = None) -> str:
    """
    Render a mustache template.

    Unresolved variables render as empty text. The mustache renderer
    HTML-escapes values, so entities are decoded back: prompts are plain
    text, not markup.

    Args:
        template: Mustache template text
        variables: Values referenced by the template

    Returns:
        The rendered text
    """
    if not template:
        return ""
    if "{{" not in template:
        return template
    prompt = PromptTemplate.from_template(template, template_format="mustache")
    rendered = prompt.format(**(variables or {}))
    return html.unescape(rendered)

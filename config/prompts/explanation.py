"""Explanation prompt — clear, modular encyclopedia-style explanations.

Used by ``POST /api/explain``: the user's topic is inserted under ``Topic``
and any additional rules from the client are appended to the rule list.
"""

from __future__ import annotations

EXPLANATION_SYSTEM_PROMPT = (
    "You are a knowledgeable encyclopedia writer. Explain topics accurately, "
    "clearly and without padding."
)

EXPLANATION_PROMPT = """\
Write a clear, concise explanation of the topic below using modular paragraphs of 5-10 sentences each.

Output format:
- Title and content

Rules:
- Always format using Markdown. Content should not include anything larger than section headers (##)
- For inline math using single dollars: $\\frac{{2}}{{5}}$, for block math use double dollars
$$(expression)$$
- Use lists and bullets sparingly
{additional_rules}
Topic: {topic}"""


def create_explanation_prompt(topic: str, additional_rules: list[str] | None = None) -> str:
    """Build the explanation prompt for *topic*."""
    rules = "".join(f"- {rule.strip()}\n" for rule in additional_rules or [] if rule.strip())
    return EXPLANATION_PROMPT.format(additional_rules=rules, topic=topic)

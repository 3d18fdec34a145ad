"""Prompt assembly for the tool-call interpreter."""

from __future__ import annotations

import json

TOOL_CATALOGUE = """\
You are a voice command interpreter. Your job is to analyze spoken text and convert it into structured tool calls.

Available tools:

1. navigate:
   description: Navigate to a different page in the application
   parameters: { "page": "string" }
   examples: "open settings", "go to login", "show dashboard"

2. save_form:
   description: Save a form field value
   parameters: { "field": "string", "value": "string" }
   examples: "save email john@example.com", "set username to alice", "my name is Bob"

3. trigger_email:
   description: Send a notification email
   parameters: { "subject": "string", "body": "string" }
   examples: "send email to HR", "email support about login issue"

4. submit_form:
   description: Submit the current form
   parameters: {}
   examples: "submit the form", "send it", "submit"

5. unknown:
   description: Use when the intent is unclear
   parameters: { "text": "original text" }

CRITICAL RULES:
- Your response MUST be valid JSON
- Your response MUST match this exact structure:
  {
    "tool": "tool_name",
    "params": { "key": "value" }
  }
- Do NOT include any explanations, markdown, or extra text
- Choose the MOST appropriate tool based on the user's intent
- If uncertain, use the "unknown" tool"""

FEW_SHOT_EXAMPLES: tuple[tuple[str, dict[str, object]], ...] = (
    ("open settings page", {"tool": "navigate", "params": {"page": "settings"}}),
    ("save email john@example.com", {"tool": "save_form", "params": {"field": "email", "value": "john@example.com"}}),
    (
        "send email to HR about vacation",
        {"tool": "trigger_email", "params": {"subject": "Vacation request", "body": "Request for vacation time"}},
    ),
    ("submit the form", {"tool": "submit_form", "params": {}}),
)


def render_examples() -> str:
    blocks = ["Examples:"]
    for utterance, output in FEW_SHOT_EXAMPLES:
        rendered = json.dumps(output, separators=(",", ":"))
        blocks.append(f'Input: "{utterance}"\nOutput: {rendered}')
    return "\n\n".join(blocks)


def build_prompt(text: str, context_summary: str = "") -> str:
    """Assemble catalogue, examples, history and the user command, in that order.

    ``text`` must already be sanitized.
    """
    blocks = [TOOL_CATALOGUE, render_examples(), "Now interpret this command:"]
    if context_summary.strip():
        blocks.append(context_summary.strip())
    blocks.append(f'User command: "{text}"')
    blocks.append("Your JSON response:")
    return "\n\n".join(blocks)

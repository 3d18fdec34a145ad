"""Built-in form and navigation actions.

Side effects are simulated; each handler only shapes an ``ActionResult``.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from loguru import logger

from voxintent.tools.registry import ToolDescriptor, ToolRegistry
from voxintent.types import ActionResult

DEFAULT_EMAIL_SUBJECT = "Email notification"


def navigate(params: Mapping[str, Any]) -> ActionResult:
    page = str(params["page"])
    logger.info("action.navigate page={}", page)
    return ActionResult(action="NAVIGATE", target=page, success=True)


def save_form(params: Mapping[str, Any]) -> ActionResult:
    field = str(params["field"])
    value = str(params["value"])
    logger.info("action.save_form field={}", field)
    return ActionResult(action="SAVE_FORM_FIELD", field=field, value=value, success=True)


def trigger_email(params: Mapping[str, Any]) -> ActionResult:
    subject = params.get("subject")
    body = params.get("body")
    subject = DEFAULT_EMAIL_SUBJECT if subject is None else str(subject)
    body = "" if body is None else str(body)
    task_id = f"email_{time.time_ns() // 1_000_000}"
    logger.info("action.trigger_email task_id={} subject={}", task_id, subject)
    return ActionResult(
        action="BACKEND_TASK",
        task_id=task_id,
        metadata={"subject": subject, "body": body, "status": "queued"},
        success=True,
    )


def submit_form(_params: Mapping[str, Any]) -> ActionResult:
    logger.info("action.submit_form")
    return ActionResult(action="SUBMIT_FORM", success=True)


def register_builtin_tools(registry: ToolRegistry) -> None:
    """Register the default action handlers."""

    registry.register(
        ToolDescriptor(
            name="navigate",
            description="Navigate to a different page in the application",
            handler=navigate,
            required=("page",),
        )
    )
    registry.register(
        ToolDescriptor(
            name="save_form",
            description="Save a form field value",
            handler=save_form,
            required=("field", "value"),
        )
    )
    registry.register(
        ToolDescriptor(
            name="trigger_email",
            description="Send a notification email",
            handler=trigger_email,
        )
    )
    registry.register(
        ToolDescriptor(
            name="submit_form",
            description="Submit the current form",
            handler=submit_form,
        )
    )


def build_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    register_builtin_tools(registry)
    return registry

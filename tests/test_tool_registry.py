import pytest

from voxintent.errors import DispatchError
from voxintent.tools import ToolDescriptor, ToolRegistry, build_default_registry
from voxintent.tools.builtin import submit_form
from voxintent.types import ActionResult, ToolCall


@pytest.fixture
def registry() -> ToolRegistry:
    return build_default_registry()


@pytest.mark.asyncio
async def test_navigate(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("navigate", {"page": "settings"}))
    assert result == ActionResult(action="NAVIGATE", target="settings", success=True)


@pytest.mark.asyncio
async def test_save_form(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("save_form", {"field": "email", "value": "john@example.com"}))
    assert result == ActionResult(action="SAVE_FORM_FIELD", field="email", value="john@example.com", success=True)


@pytest.mark.asyncio
async def test_submit_form(registry: ToolRegistry) -> None:
    assert await registry.execute(ToolCall("submit_form", {})) == ActionResult(action="SUBMIT_FORM", success=True)


@pytest.mark.asyncio
async def test_trigger_email_queues_backend_task(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("trigger_email", {"subject": "Vacation", "body": "Next week"}))
    assert result.action == "BACKEND_TASK"
    assert result.success is True
    assert result.task_id is not None and result.task_id.startswith("email_")
    assert result.metadata == {"subject": "Vacation", "body": "Next week", "status": "queued"}


@pytest.mark.asyncio
async def test_trigger_email_defaults(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("trigger_email", {}))
    assert result.metadata == {"subject": "Email notification", "body": "", "status": "queued"}


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("NAVIGATE", {"page": "home"}))
    assert result.action == "NAVIGATE"


@pytest.mark.asyncio
async def test_missing_required_parameter_is_error(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("navigate", {}))
    assert result == ActionResult(action="ERROR", success=False, error="Missing 'page' parameter for navigate")

    result = await registry.execute(ToolCall("save_form", {"field": "email"}))
    assert result.error == "Missing 'value' parameter for save_form"


@pytest.mark.asyncio
async def test_unknown_tool_echoes_original_text(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall.unknown(), original_text="sand and they may")
    assert result == ActionResult(
        action="UNKNOWN",
        success=False,
        error="Could not interpret the command",
        metadata={"original_text": "sand and they may"},
    )


@pytest.mark.asyncio
async def test_unknown_tool_prefers_text_param(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("unknown", {"text": "from model"}), original_text="raw")
    assert result.metadata == {"original_text": "from model"}


@pytest.mark.asyncio
async def test_unregistered_tool_is_unknown(registry: ToolRegistry) -> None:
    result = await registry.execute(ToolCall("launch_rocket", {}))
    assert result.action == "UNKNOWN"
    assert result.success is False
    assert result.metadata == {}


@pytest.mark.asyncio
async def test_handler_failures_become_error_results() -> None:
    registry = ToolRegistry()

    def _broken(_params):
        raise RuntimeError("disk on fire")

    def _refuses(_params):
        raise DispatchError("quota exceeded")

    async def _async_ok(params):
        return ActionResult(action="PING", target=params.get("host"), success=True)

    registry.register(ToolDescriptor(name="broken", description="", handler=_broken))
    registry.register(ToolDescriptor(name="refuses", description="", handler=_refuses))
    registry.register(ToolDescriptor(name="ping", description="", handler=_async_ok))

    broken = await registry.execute(ToolCall("broken", {}))
    assert broken.action == "ERROR"
    assert broken.error == "execution failed: disk on fire"
    assert (await registry.execute(ToolCall("refuses", {}))).error == "quota exceeded"
    assert (await registry.execute(ToolCall("ping", {"host": "a"}))).target == "a"


@pytest.mark.asyncio
async def test_handler_returning_non_result_becomes_error() -> None:
    registry = ToolRegistry()
    registry.register(ToolDescriptor(name="legacy", description="", handler=lambda _params: {"action": "LEGACY"}))

    result = await registry.execute(ToolCall("legacy", {}))
    assert result.action == "ERROR"
    assert result.success is False
    assert result.error == "legacy handler returned no ActionResult"


def test_unknown_name_is_reserved() -> None:
    registry = ToolRegistry()
    with pytest.raises(ValueError):
        registry.register(ToolDescriptor(name="Unknown", description="", handler=submit_form))


def test_registered_names_are_trimmed() -> None:
    registry = ToolRegistry()
    registry.register(ToolDescriptor(name=" Submit_Form ", description="", handler=submit_form))
    assert registry.has("submit_form")
    assert registry.get("SUBMIT_FORM ") is not None


def test_descriptors_are_sorted(registry: ToolRegistry) -> None:
    assert [item.name for item in registry.descriptors()] == ["navigate", "save_form", "submit_form", "trigger_email"]
    assert registry.has("Save_Form")
    assert registry.get("missing") is None


def test_failed_result_requires_error() -> None:
    with pytest.raises(ValueError):
        ActionResult(action="ERROR", success=False)
    with pytest.raises(ValueError):
        ActionResult(action="ERROR", success=True, error="boom")
    with pytest.raises(ValueError):
        ActionResult(action="UNKNOWN", success=True)

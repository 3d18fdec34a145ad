import pytest

from voxintent.errors import InvalidToolCallError
from voxintent.types import ToolCall
from voxintent.validation import MAX_TEXT_LENGTH, check_tool_call, is_valid, sanitize


def test_sanitize_strips_control_characters_but_keeps_whitespace_controls() -> None:
    assert sanitize("  open\x00 set\x07tings\tpage\r\nnow\x1b  ") == "open settings\tpage\r\nnow"


def test_sanitize_none_is_empty() -> None:
    assert sanitize(None) == ""


def test_sanitize_truncates_to_max_length() -> None:
    assert len(sanitize("a" * (MAX_TEXT_LENGTH + 50))) == MAX_TEXT_LENGTH


@pytest.mark.parametrize(
    "raw",
    [
        "plain text",
        "  padded  ",
        "\x00\x01only controls\x7f",
        "a" * 999 + " " + "b" * 20,
        " " * 5 + "x" * 1200,
        "tab\tinside\nlines\r",
    ],
)
def test_sanitize_is_idempotent_and_bounded(raw: str) -> None:
    once = sanitize(raw)
    assert sanitize(once) == once
    assert len(once) <= MAX_TEXT_LENGTH


def test_navigate_requires_page() -> None:
    assert is_valid(ToolCall("navigate", {"page": "settings"}))
    assert not is_valid(ToolCall("navigate", {}))
    assert not is_valid(ToolCall("navigate", {"page": ""}))
    assert not is_valid(ToolCall("navigate", {"page": "p" * 501}))


def test_save_form_requires_field_and_value() -> None:
    assert is_valid(ToolCall("save_form", {"field": "email", "value": "john@example.com"}))
    assert not is_valid(ToolCall("save_form", {"field": "email"}))
    assert not is_valid(ToolCall("save_form", {"value": "x"}))
    assert not is_valid(ToolCall("save_form", {"field": "email", "value": "v" * 501}))


def test_trigger_email_params_are_optional_but_bounded() -> None:
    assert is_valid(ToolCall("trigger_email", {}))
    assert is_valid(ToolCall("trigger_email", {"subject": "s" * 500, "body": "b" * 1000}))
    assert not is_valid(ToolCall("trigger_email", {"subject": "s" * 501}))
    assert not is_valid(ToolCall("trigger_email", {"body": "b" * 1001}))


def test_tool_names_are_case_insensitive() -> None:
    assert not is_valid(ToolCall("NAVIGATE", {}))
    assert is_valid(ToolCall("Submit_Form", {}))


def test_unregistered_tools_pass_validation() -> None:
    assert is_valid(ToolCall("launch_rocket", {"anything": "x" * 5000}))


def test_empty_tool_or_missing_call_is_invalid() -> None:
    assert not is_valid(ToolCall("  ", {}))
    assert not is_valid(None)


def test_check_tool_call_names_the_failing_parameter() -> None:
    with pytest.raises(InvalidToolCallError, match="save_form: missing 'value'"):
        check_tool_call(ToolCall("save_form", {"field": "email"}))

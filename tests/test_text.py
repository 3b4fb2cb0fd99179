from chat_relay.utils.guards import describe_request_errors
from chat_relay.utils.text import normalize_markdown, split_paragraphs


def test_inline_dash_list_split_onto_lines():
    text = "Tips: - Save more - Spend less"

    assert normalize_markdown(text) == "Tips:\n- Save more\n- Spend less"


def test_numbered_steps_split_onto_lines():
    text = "Steps: 1. Open an account 2. Set up transfers"

    assert normalize_markdown(text) == "Steps:\n1. Open an account\n2. Set up transfers"


def test_bullet_characters_become_dashes():
    assert normalize_markdown("• Apples • Pears") == "- Apples\n- Pears"


def test_bold_label_starts_paragraph():
    result = normalize_markdown("Summary first. **Next steps:** - Review budget")

    lines = result.splitlines()
    assert lines[0].strip() == "Summary first."
    assert "**Next steps:**" in result
    assert "- Review budget" in lines
    assert "\n\n\n" not in result


def test_decimal_numbers_untouched():
    assert normalize_markdown("Rates are 4.5% this year") == "Rates are 4.5% this year"


def test_empty_text_passthrough():
    assert normalize_markdown("") == ""


def test_split_paragraphs():
    text = "First  paragraph\nline two.\n\n\n\x07Second one.\r\n\r\nok"

    assert split_paragraphs(text) == ["First paragraph\nline two.", "Second one.", "ok"]
    assert split_paragraphs(text, min_chars=5) == ["First paragraph\nline two.", "Second one."]


def test_describe_missing_messages():
    errors = [{"type": "missing", "loc": ("body", "messages"), "msg": "Field required"}]

    assert describe_request_errors(errors) == "Messages must be an array"


def test_describe_empty_messages():
    errors = [{"type": "too_short", "loc": ("body", "messages"), "msg": "List should have at least 1 item"}]

    assert describe_request_errors(errors) == "Messages must be a non-empty array"


def test_describe_bad_message_field():
    errors = [{"type": "string_type", "loc": ("body", "messages", 2, "content"), "msg": "Input should be a valid string"}]

    assert describe_request_errors(errors) == "Invalid message at index 2: content: Input should be a valid string"


def test_describe_invalid_json():
    errors = [{"type": "json_invalid", "loc": ("body", 14), "msg": "JSON decode error"}]

    assert describe_request_errors(errors) == "Request body must be valid JSON"

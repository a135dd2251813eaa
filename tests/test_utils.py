import pytest

from app.utils import clean_text, parse_leading_int


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2", 2),
        (" 12 ", 12),
        ("3 (Specials)", 3),
        (4, 4),
        (5.9, 5),
        ("Specials", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ],
)
def test_parse_leading_int(raw, expected):
    assert parse_leading_int(raw) == expected


def test_clean_text_handles_none_and_whitespace():
    assert clean_text(None) == ""
    assert clean_text("  Pilot ") == "Pilot"
    assert clean_text(7) == "7"

import pytest

from salonbook.validation import UNSET, ValidationError, parse_status_update, require_phone


def test_status_passed_through_verbatim():
    assert parse_status_update({"status": " confirmed "}).status == " confirmed "


def test_absent_notes_stay_unset():
    update = parse_status_update({"status": "confirmed"})

    assert update.notes is UNSET


def test_explicit_null_notes_kept():
    update = parse_status_update({"status": "confirmed", "notes": None})

    assert update.notes is None


@pytest.mark.parametrize("payload", [[], "confirmed", {"status": 1}, {"notes": 5}])
def test_structurally_bad_bodies(payload):
    with pytest.raises(ValidationError):
        parse_status_update(payload)


def test_require_phone():
    assert require_phone({"phone": " 5551112233 "}) == "5551112233"
    with pytest.raises(ValidationError):
        require_phone({"phone": "  "})

from pandit_booking import models, util


def test_booking_from_populated_refs():
    record = models.BookingRecord.from_dict(
        {
            "_id": "b1",
            "status": "Accepted",
            "puja_date": "2024-03-01",
            "panditid": {"_id": "p1", "name": "Shastri"},
            "userid": {"_id": "u1", "name": "Asha", "phone": "9876543210"},
            "pujaId": {"_id": "s1", "name": "Lakshmi Puja"},
            "SamanList": "Kalash",
        }
    )
    assert record.pandit_name == "Shastri"
    assert record.devotee_phone == "9876543210"
    assert record.service_name == "Lakshmi Puja"
    assert record.saman_list == "Kalash"


def test_booking_placeholders_for_missing_refs():
    record = models.BookingRecord.from_dict({"id": 7, "panditid": "p1"})
    assert record.id == "7"
    assert record.pandit.id == "p1"
    assert record.pandit_name == "Unknown"
    assert record.devotee_name == "Devotee"
    assert record.devotee_phone == "N/A"
    assert record.service_name == "Unknown"
    assert record.location_display == "N/A"
    assert record.status_raw is None


def test_pandit_from_dict_tolerates_loose_fields():
    pandit = models.Pandit.from_dict(
        {"_id": "p1", "experienceYears": "abc", "languages": "Hindi, Marathi", "speciality": ["Havan"]}
    )
    assert pandit.experience_years is None
    assert pandit.languages == ["Hindi", "Marathi"]
    assert pandit.specialties == ["Havan"]
    assert pandit.is_verified is False


def test_session_round_trip_and_login_payload():
    session = models.Session.from_login(
        {"token": "t", "pandit": {"_id": "p1", "name": "Shastri"}}, role="pandit"
    )
    assert session.user_id == "p1"
    assert session.role == "pandit"
    assert models.Session.from_dict(session.to_dict()) == session


def test_transient_message_expires():
    now = [0.0]
    message = util.TransientMessage(lambda: now[0])
    message.show("Saved", 2.5)
    assert message.text == "Saved"
    assert message.kind == "info"
    now[0] = 2.49
    assert message.text == "Saved"
    now[0] = 2.5
    assert message.text is None
    assert message.kind is None


def test_transient_message_without_ttl_persists_until_cleared():
    now = [0.0]
    message = util.TransientMessage(lambda: now[0])
    message.show("Fix the form", kind="error")
    now[0] = 1000.0
    assert message.is_error
    message.clear()
    assert message.text is None


def test_booking_fields_coerced_to_text():
    record = models.BookingRecord.from_dict({"id": 1, "status": 3, "puja_date": 20240110, "date": ""})
    assert record.status_raw == "3"
    assert record.puja_date == "20240110"
    assert record.date is None

import json
from unittest.mock import MagicMock

import pytest
import requests

from pandit_booking import api


def make_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = b"" if payload is None else json.dumps(payload).encode()
    resp.json.return_value = payload
    return resp


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(api.time, "sleep", sleeps.append)
    return sleeps


def make_client(*responses, **kwargs):
    client = api.APIClient("tok", base_url="http://backend/", **kwargs)
    client.session = MagicMock()
    client.session.request.side_effect = list(responses)
    return client


def test_get_sends_bearer_token_and_params(no_sleep):
    client = make_client(make_response(payload=[{"_id": "1"}]))
    assert client.get_bookings("u1") == [{"_id": "1"}]
    args, kwargs = client.session.request.call_args
    assert args == ("GET", "http://backend/api/bookings")
    assert kwargs["params"] == {"userid": "u1"}
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert kwargs["timeout"] == 30


def test_server_errors_are_retried_for_reads(no_sleep):
    client = make_client(make_response(502), make_response(payload=[{"_id": "p1"}]))
    assert client.get_pandits() == [{"_id": "p1"}]
    assert no_sleep == [1]
    assert client.session.request.call_count == 2


def test_writes_are_sent_once_on_server_error(no_sleep):
    client = make_client(make_response(500, {"error": "boom"}), make_response(payload={}))
    with pytest.raises(api.APIError) as excinfo:
        client.update_booking_status("1", "Accepted")
    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "boom"
    assert client.session.request.call_count == 1
    assert client.session.request.call_args.kwargs["json"] == {"status": "Accepted"}
    assert no_sleep == []


def test_writes_are_sent_once_on_network_error(no_sleep):
    client = make_client(requests.ReadTimeout("slow"), make_response(201, {"_id": "b1"}))
    with pytest.raises(api.APIError):
        client.create_booking({"puja_date": "2024-01-01"})
    assert client.session.request.call_count == 1
    assert no_sleep == []


def test_network_errors_exhaust_retries(no_sleep):
    client = make_client(*[requests.ConnectionError("down")] * 4)
    with pytest.raises(api.APIError):
        client.get_pandits()
    assert no_sleep == [1, 2, 4, 8]


def test_client_errors_raise_with_server_message(no_sleep):
    client = make_client(make_response(400, {"error": "Slot taken"}))
    with pytest.raises(api.APIError) as excinfo:
        client.create_booking({"puja_date": "2024-01-01"})
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Slot taken"
    assert client.session.request.call_count == 1


def test_unauthorized_refreshes_token_once(no_sleep):
    client = make_client(make_response(401), make_response(payload=[]))
    client.token_provider = lambda: "fresh"
    assert client.get_poojas() == []
    assert client.token == "fresh"
    headers = client.session.request.call_args.kwargs["headers"]
    assert headers == {"Authorization": "Bearer fresh"}


def test_unauthorized_without_provider_raises(no_sleep):
    client = make_client(make_response(401, {"message": "Token expired"}))
    with pytest.raises(api.APIError) as excinfo:
        client.get_devotees()
    assert excinfo.value.message == "Token expired"


def test_offline_reads_fixtures(tmp_path):
    client = api.APIClient(offline=True)
    client.json_dir = tmp_path
    (tmp_path / "api_bookings_view__panditid-p1.json").write_text('[{"_id": "b"}]')
    assert client.get_pandit_bookings("p1") == [{"_id": "b"}]
    with pytest.raises(api.APIError):
        client.delete_pooja("s1")


def test_dump_json_writes_fixture(tmp_path, no_sleep):
    client = make_client(make_response(payload=[{"_id": "s1"}]), dump_json=True)
    client.json_dir = tmp_path / "json"
    client.get_poojas()
    assert json.loads((tmp_path / "json" / "api_poojas.json").read_text()) == [{"_id": "s1"}]


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("PANDIT_BOOKING_API_URL", "https://api.example/")
    assert api.APIClient().base_url == "https://api.example"


def test_as_list_unwraps_payloads():
    assert api.as_list([1]) == [1]
    assert api.as_list({"bookings": [2]}) == [2]
    assert api.as_list({"data": [3]}) == [3]
    assert api.as_list(None) == []
    assert api.as_list({"message": "none"}) == []

import pytest
from fastapi.testclient import TestClient

from app.main import create_app


@pytest.fixture
def client(otp_service):
    return TestClient(create_app(otp_service=otp_service))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_request_and_verify_flow(client, repository):
    r = client.post("/auth/otp/request", json={"phoneNumber": "0241234567"})
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "message": "OTP sent to +233241234567. It will expire in 10 minutes."}
    assert r.headers["x-request-id"]
    assert repository.get("+233241234567").attempts == 0

    r = client.post("/auth/otp/verify", json={"phoneNumber": "0241234567", "otp": "000000"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid OTP. 2 attempts remaining."}
    assert repository.get("+233241234567").attempts == 1

    r = client.post("/auth/otp/verify", json={"phoneNumber": "+233 24 123 4567", "otp": "123456"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "OTP verified successfully!"}

    r = client.post("/auth/otp/verify", json={"phoneNumber": "0241234567", "otp": "123456"})
    assert r.status_code == 400
    assert r.json()["message"].startswith("OTP not found or expired")


def test_attempt_cap_over_http(client):
    client.post("/auth/otp/request", json={"phoneNumber": "0241234567"})
    for _ in range(3):
        r = client.post("/auth/otp/verify", json={"phoneNumber": "0241234567", "otp": "000000"})
    assert r.json()["message"] == "Invalid OTP. 0 attempts remaining."

    r = client.post("/auth/otp/verify", json={"phoneNumber": "0241234567", "otp": "123456"})
    assert r.status_code == 400
    assert r.json()["message"] == "OTP not found or expired. Please request a new one."


def test_same_subscriber_in_two_formats_is_rate_limited(client, sms_gateway):
    r = client.post("/auth/otp/request", json={"phoneNumber": "+233241234567"})
    assert r.status_code == 200
    r = client.post("/auth/otp/request", json={"phoneNumber": "0241234567"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Please wait 2 minutes before requesting another OTP."}
    assert len(sms_gateway.sent) == 1


def test_invalid_phone_is_400(client, sms_gateway):
    r = client.post("/auth/otp/request", json={"phoneNumber": "0211234567"})
    assert r.status_code == 400
    assert r.json()["message"] == "Please enter a valid Ghana mobile number."
    assert sms_gateway.sent == []


@pytest.mark.parametrize("body", [{}, {"phoneNumber": ""}, {"phoneNumber": "   "}, {"phone": "0241234567"}, [], ["0241234567"]])
def test_request_requires_phone(client, body):
    r = client.post("/auth/otp/request", json=body)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Phone number is required"}


@pytest.mark.parametrize("body", [{"phoneNumber": "0241234567"}, {"otp": "123456"}, {"phoneNumber": "0241234567", "otp": ""}])
def test_verify_requires_phone_and_otp(client, body):
    r = client.post("/auth/otp/verify", json=body)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Phone number and OTP are required"}


def test_malformed_json_is_500(client):
    headers = {"content-type": "application/json"}
    r = client.post("/auth/otp/request", content="{not json", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "An error occurred while requesting OTP"}

    r = client.post("/auth/otp/verify", content="{not json", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "An error occurred while verifying OTP"}


def test_unexpected_verify_error_is_500(client, repository):
    def broken_get(phone_number):
        raise RuntimeError("store offline")

    repository.get = broken_get
    r = client.post("/auth/otp/verify", json={"phoneNumber": "0241234567", "otp": "123456"})
    assert r.status_code == 500
    assert "store offline" not in r.text


def test_unknown_route_uses_json_error_shape(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_lifespan_starts_and_stops_sweeper(otp_service):
    app = create_app(otp_service=otp_service)
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        assert app.state.otp_sweeper._task is not None
    assert app.state.otp_sweeper._task is None

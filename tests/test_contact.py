import pytest

from mailer import mail
from models import db, ContactMessage, User

VALID = {
    'firstName': "Ada",
    'lastName': "Lovelace",
    'email': "ada@example.org",
    'phone': "+441234567890",
    'message': "I would like to know more about the Pro plan.",
}


def test_valid_submission_is_stored_and_mailed(client):
    with mail.record_messages() as outbox:
        response = client.post("/api/email/contact", json=VALID)

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['message'] == "Contact form submitted successfully"
    assert body['data']['email'] == "ada@example.org"
    assert body['data']['userId'] is None

    stored = db.session.query(ContactMessage).one()
    assert stored.status == 'new'
    assert len(outbox) == 1
    assert outbox[0].recipients == ["owner@nexusai.test"]
    assert "Ada Lovelace" in outbox[0].subject


@pytest.mark.parametrize("email", ["ada", "ada@example", "@example.org", "ada @example.org", "ada@exa mple.org"])
def test_malformed_email_is_bad_request(client, email):
    response = client.post("/api/email/contact", json={**VALID, 'email': email})

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Invalid email address"
    assert db.session.query(ContactMessage).count() == 0


@pytest.mark.parametrize("field", ['firstName', 'lastName', 'email', 'phone', 'message'])
def test_missing_field_is_bad_request(client, field):
    body = {**VALID}
    body.pop(field)
    response = client.post("/api/email/contact", json=body)

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "All fields are required"


def test_numeric_phone_is_accepted(client):
    response = client.post("/api/email/contact", json={**VALID, 'phone': 5551234})

    assert response.status_code == 200
    assert db.session.query(ContactMessage).one().phone == "5551234"


def test_delivery_failure_still_succeeds(client, monkeypatch):
    def broken_send(message):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "send", broken_send)
    response = client.post("/api/email/contact", json=VALID)

    assert response.status_code == 200
    assert response.get_json()['success'] is True
    assert db.session.query(ContactMessage).count() == 1


def test_signed_in_sender_is_linked_to_user(client, login):
    login("user_contact")
    response = client.post("/api/email/contact", json=VALID)

    user = db.session.query(User).filter_by(subject_id="user_contact").one()
    assert response.get_json()['data']['userId'] == user.id


def test_storage_failure_is_500(client, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("storage.create_contact_message", broken)
    response = client.post("/api/email/contact", json=VALID)

    assert response.status_code == 500

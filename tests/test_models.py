import dataclasses

import pytest

from gateway.app.services.account_requests.models import (
    AccountRequest,
    NotificationMessage,
    Outcome,
    ProcessingResult,
    format_body,
    parse_body,
)


def test_account_request_is_immutable():
    req = AccountRequest(username='alice', email='alice@example.com')
    with pytest.raises(dataclasses.FrozenInstanceError):
        req.username = 'mallory'


def test_message_for_request():
    req = AccountRequest(username='alice', email='alice@example.com')
    msg = NotificationMessage.for_request(req, sender='gw@example.com', recipient='admin@example.com')
    assert msg.subject == 'New Account Request!'
    assert msg.body == 'Username: alice\nEmail: alice@example.com'


@pytest.mark.parametrize('username,email', [
    ('alice', 'alice@example.com'),
    ('o.brien-2', 'o.brien+test@example.co.uk'),
    ('Zoë', 'zoe@example.org'),
])
def test_body_round_trip(username, email):
    assert parse_body(format_body(username, email)) == (username, email)


def test_parse_body_rejects_other_text():
    with pytest.raises(ValueError):
        parse_body('Hello\nthere')


def test_status_codes():
    assert Outcome.SUCCESS.status_code == 200
    assert Outcome.CONFLICT.status_code == 409
    assert Outcome.VALIDATION_FAILED.status_code == 400
    assert Outcome.DIRECTORY_UNAVAILABLE.status_code == 500
    assert Outcome.DELIVERY_FAILED.status_code == 500


def test_result_repr():
    ok = ProcessingResult(Outcome.SUCCESS)
    failed = ProcessingResult(Outcome.DELIVERY_FAILED, stage='commit', detail='SMTPDataError (554)')
    assert ok.success and repr(ok) == 'ProcessingResult(outcome=success)'
    assert 'stage=commit' in repr(failed)
    assert failed.message == 'Error sending email'

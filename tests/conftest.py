"""
Pytest configuration and fixtures for all tests.
"""

import pytest

from gateway.app import create_app
from gateway.app.config import TestingConfig
from gateway.app.services.account_requests.errors import DeliveryFailedError, DirectoryUnavailableError
from gateway.app.services.account_requests.pipeline import RequestPipeline


class RecordingDirectory:
    """Directory double: a fixed set of usernames, or an error to raise."""

    def __init__(self, existing=(), error=None):
        self.existing = set(existing)
        self.error = error
        self.calls = []

    def exists(self, username):
        self.calls.append(username)
        if self.error is not None:
            raise self.error
        return username in self.existing


class RecordingMailer:
    """Mail double: records delivered messages, or fails at a given stage."""

    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.sessions = 0
        self.delivered = []

    def notify(self, message):
        self.sessions += 1
        if self.fail_at:
            raise DeliveryFailedError(self.fail_at, 'SMTPAuthenticationError (535)')
        self.delivered.append(message)


@pytest.fixture(name="directory")
def fixture_directory():
    return RecordingDirectory(existing={'bob'})


@pytest.fixture(name="mailer")
def fixture_mailer():
    return RecordingMailer()


@pytest.fixture(name="pipeline")
def fixture_pipeline(directory, mailer):
    return RequestPipeline(directory, mailer, sender='gateway@example.com', recipient='admin@example.com')


@pytest.fixture(name="app")
def fixture_app(pipeline):
    app = create_app(TestingConfig)
    app.extensions['request_pipeline'] = pipeline
    return app


@pytest.fixture(name="client")
def fixture_client(app):
    return app.test_client()


@pytest.fixture(name="directory_down")
def fixture_directory_down():
    return RecordingDirectory(error=DirectoryUnavailableError('bind', 'bind rejected (49)'))

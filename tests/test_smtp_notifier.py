"""SmtpMailNotifier stage handling against a fake SMTP session."""
import email
import smtplib
import ssl
from types import SimpleNamespace

import pytest

from gateway.app.services.account_requests.errors import DeliveryFailedError
from gateway.app.services.account_requests.models import AccountRequest, NotificationMessage
from gateway.app.services.mail import smtp_notifier as mod
from gateway.app.settings import MailSettings

SETTINGS = MailSettings(
    host='smtp.example.com',
    port=587,
    username='gateway@example.com',
    password='smtp-secret',
    sender='gateway@example.com',
    recipient='admin@example.com',
)

MESSAGE = NotificationMessage.for_request(
    AccountRequest(username='alice', email='alice@example.com'),
    sender='gateway@example.com',
    recipient='admin@example.com',
)


class FakeSMTP:
    fail_at = None
    quit_fails = False
    instances = []

    def __init__(self, host='', port=0, timeout=None):
        self.timeout = timeout
        self.connect_timeout = timeout
        self.commands = []
        self.sock_timeout = None
        self.sock = SimpleNamespace(settimeout=self._settimeout)
        self.data = None
        self.user = self.password = None
        self.quit_called = False
        FakeSMTP.instances.append(self)
        self.commands.append(('connect', host, port))
        if self.fail_at == 'connect':
            raise ConnectionRefusedError(111, 'Connection refused')

    def _settimeout(self, value):
        self.sock_timeout = value

    def ehlo(self):
        return 250, b'ok'

    def starttls(self, context=None):
        self.commands.append(('starttls', context))
        if self.fail_at == 'starttls':
            raise ssl.SSLError('certificate verify failed')
        return 220, b'go ahead'

    def auth_plain(self, challenge=None):
        return f"\0{self.user}\0{self.password}"

    def auth(self, mechanism, authobject):
        self.commands.append(('auth', mechanism, self.user))
        if self.fail_at == 'authenticate':
            raise smtplib.SMTPAuthenticationError(535, b'5.7.8 credentials smtp-secret rejected')
        return 235, b'ok'

    def mail(self, sender):
        self.commands.append(('mail', sender))
        return (550, b'no') if self.fail_at == 'set_sender' else (250, b'ok')

    def rcpt(self, recipient):
        self.commands.append(('rcpt', recipient))
        return (550, b'no such user') if self.fail_at == 'set_recipient' else (250, b'ok')

    def docmd(self, cmd):
        self.commands.append(('docmd', cmd))
        return (451, b'later') if self.fail_at == 'write_body' else (354, b'go')

    def send(self, data):
        self.data = data

    def getreply(self):
        return (554, b'rejected') if self.fail_at == 'commit' else (250, b'queued')

    def quit(self):
        self.quit_called = True
        if self.quit_fails:
            raise smtplib.SMTPServerDisconnected('please run connect() first')
        return 221, b'bye'

    def close(self):
        self.commands.append(('close',))


@pytest.fixture(name="fake_smtp")
def fixture_fake_smtp(monkeypatch):
    FakeSMTP.fail_at = None
    FakeSMTP.quit_fails = False
    FakeSMTP.instances = []
    monkeypatch.setattr(mod.smtplib, 'SMTP', FakeSMTP)
    return FakeSMTP


@pytest.fixture(name="notifier")
def fixture_notifier():
    return mod.SmtpMailNotifier(SETTINGS, ssl_context=ssl.create_default_context())


def test_delivers_through_all_stages(app, fake_smtp, notifier):
    with app.app_context():
        notifier.notify(MESSAGE)

    smtp = fake_smtp.instances[-1]
    assert smtp.connect_timeout == 35
    assert smtp.timeout == 30
    assert smtp.sock_timeout == 30
    names = [c[0] for c in smtp.commands]
    assert names == ['connect', 'starttls', 'auth', 'mail', 'rcpt', 'docmd']
    assert smtp.commands[0] == ('connect', 'smtp.example.com', 587)
    assert smtp.commands[2] == ('auth', 'PLAIN', 'gateway@example.com')
    assert smtp.commands[4] == ('rcpt', 'admin@example.com')
    assert smtp.quit_called

    assert smtp.data.endswith(b'\r\n.\r\n')
    # drop the CRLF.CRLF end-of-data marker
    parsed = email.message_from_bytes(smtp.data[:-5])
    assert parsed['Subject'] == 'New Account Request!'
    assert parsed['To'] == 'admin@example.com'
    body = parsed.get_payload(decode=True).decode('utf-8').replace('\r\n', '\n').rstrip("\n")
    assert body == 'Username: alice\nEmail: alice@example.com'


def test_tls_context_verifies_certificates(notifier):
    assert notifier.ssl_context.verify_mode == ssl.CERT_REQUIRED
    assert notifier.ssl_context.check_hostname is True


def test_relay_host_with_port_suffix(app, fake_smtp):
    settings = MailSettings.from_config({'MAIL_SERVER': 'smtp.example.com:2525', 'MAIL_PORT': 587})
    assert settings.tls_server_name == 'smtp.example.com'
    notifier = mod.SmtpMailNotifier(settings, ssl_context=ssl.create_default_context())
    with app.app_context():
        notifier.notify(MESSAGE)
    assert fake_smtp.instances[-1].commands[0] == ('connect', 'smtp.example.com', 2525)


@pytest.mark.parametrize('stage', mod.STAGES)
def test_failure_is_tagged_with_stage(app, fake_smtp, notifier, stage):
    fake_smtp.fail_at = stage
    with app.app_context():
        with pytest.raises(DeliveryFailedError) as exc:
            notifier.notify(MESSAGE)

    assert exc.value.stage == stage
    assert 'smtp-secret' not in str(exc.value)
    smtp = fake_smtp.instances[-1]
    # a session that never connected has nothing to terminate
    assert smtp.quit_called is (stage != 'connect')
    # later stages never ran
    later = mod.STAGES[mod.STAGES.index(stage) + 1:]
    if 'set_recipient' in later:
        assert not any(c[0] == 'rcpt' for c in smtp.commands)
    if 'write_body' in later:
        assert smtp.data is None


def test_auth_failure_keeps_only_reply_code(app, fake_smtp, notifier):
    fake_smtp.fail_at = 'authenticate'
    with app.app_context():
        with pytest.raises(DeliveryFailedError) as exc:
            notifier.notify(MESSAGE)
    assert exc.value.reason == 'SMTPAuthenticationError (535)'
    assert exc.value.__cause__ is None


def test_quit_failure_falls_back_to_close(app, fake_smtp, notifier):
    fake_smtp.fail_at = 'authenticate'
    fake_smtp.quit_fails = True
    with app.app_context():
        with pytest.raises(DeliveryFailedError):
            notifier.notify(MESSAGE)
    assert ('close',) in fake_smtp.instances[-1].commands

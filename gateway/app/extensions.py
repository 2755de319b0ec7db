"""Flask extensions initialization (Mail, Limiter) and the request pipeline."""
from flask_mail import Mail
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from gateway.app.settings import DirectorySettings, MailSettings
from gateway.app.services.account_requests.pipeline import RequestPipeline
from gateway.app.services.directory.ldap_checker import LdapDirectoryChecker
from gateway.app.services.mail.smtp_notifier import SmtpMailNotifier

# Initialize Flask extensions
mail = Mail()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    headers_enabled=True,
)


def init_extensions(app):
    """Initialize Flask extensions with app context.

    Args:
        app: Flask application instance
    """
    mail.init_app(app)
    limiter.init_app(app)

    directory_settings = DirectorySettings.from_config(app.config)
    mail_settings = MailSettings.from_config(app.config)
    missing = directory_settings.missing() + mail_settings.missing()
    if missing:
        app.logger.warning("Account request gateway is missing settings: %s", ', '.join(missing))

    app.extensions['directory_settings'] = directory_settings
    app.extensions['mail_settings'] = mail_settings
    app.extensions['request_pipeline'] = RequestPipeline(
        LdapDirectoryChecker(directory_settings),
        SmtpMailNotifier(mail_settings),
        sender=mail_settings.sender,
        recipient=mail_settings.recipient,
    )


def get_pipeline(app) -> RequestPipeline:
    return app.extensions['request_pipeline']

"""Account request intake: POST /request with username and email."""
import logging
import re

from flask import Blueprint, current_app, make_response, request

from gateway.app.extensions import get_pipeline, limiter
from gateway.app.services.account_requests.models import AccountRequest

logger = logging.getLogger(__name__)

requests_bp = Blueprint('requests', __name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _text(body: str, status: int):
    resp = make_response(body + "\n", status)
    resp.mimetype = 'text/plain'
    return resp


def _read_fields():
    """Return (username, email) from a JSON body or form fields, or None for malformed JSON."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return None
    else:
        data = request.form
    username = data.get('username') or ''
    email = data.get('email') or ''
    if not isinstance(username, str) or not isinstance(email, str):
        return None
    return username.strip(), email.strip()


def _validate(username: str, email: str):
    """Boundary format rules. Returns an error message or None."""
    if not username or not email:
        return "Username and email are required"
    if len(username) > current_app.config.get('USERNAME_MAX_LENGTH', 64):
        return "Username is too long"
    if len(email) > current_app.config.get('EMAIL_MAX_LENGTH', 254):
        return "Email is too long"
    if any(ord(ch) < 32 for ch in username):
        return "Username contains invalid characters"
    if not EMAIL_RE.match(email):
        return "Invalid email format"
    return None


def _rate_limit():
    return current_app.config.get('ACCOUNT_REQUEST_RATE_LIMIT') or '10 per hour'


@requests_bp.route('/request', methods=['POST'])
@limiter.limit(_rate_limit)
def submit_account_request():
    """Check the username against the directory and notify the administrators."""
    fields = _read_fields()
    if fields is None:
        return _text("Invalid JSON data", 400)
    username, email = fields

    error = _validate(username, email)
    if error:
        return _text(error, 400)

    result = get_pipeline(current_app).process(AccountRequest(username=username, email=email))
    if not result.success:
        logger.info(f"Account request for {username!r} ended with {result!r}")
    return _text(result.message, result.status_code)

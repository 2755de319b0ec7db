"""Username existence check against an LDAP directory.

Each call opens its own encrypted session (LDAPS, or StartTLS when
configured), binds with the service identity, runs one subtree search and
always unbinds before returning. Any failure is raised as
DirectoryUnavailableError tagged with the stage that failed; a failed check
is never reported as "not found".
"""
from __future__ import annotations

import logging
import ssl
from typing import Protocol

from ldap3 import NONE, SIMPLE, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from gateway.app.services.account_requests.errors import DirectoryUnavailableError, describe_error
from gateway.app.settings import DirectorySettings

logger = logging.getLogger(__name__)

# resultCode values that still carry usable entries
_SEARCH_OK = (0, 4)  # success, sizeLimitExceeded


class DirectoryChecker(Protocol):
    def exists(self, username: str) -> bool:
        ...


def build_filter(attribute: str, username: str) -> str:
    """Build an equality filter with the value escaped per RFC 4515.

    Example: build_filter('cn', 'a*)(uid=*') -> '(cn=a\\2a\\29\\28uid=\\2a)'
    """
    if not username:
        raise ValueError("username must not be empty")
    return f"({attribute}={escape_filter_chars(username)})"


class LdapDirectoryChecker:
    def __init__(self, settings: DirectorySettings):
        if not (settings.use_ssl or settings.use_starttls):
            raise ValueError("directory sessions must be encrypted (LDAP_USE_SSL or LDAP_USE_STARTTLS)")
        self.settings = settings

    def _server(self) -> Server:
        s = self.settings
        tls = Tls(validate=ssl.CERT_REQUIRED, ca_certs_file=s.ca_file)
        return Server(
            s.server,
            port=s.port,
            use_ssl=s.use_ssl and not s.use_starttls,
            tls=tls,
            connect_timeout=s.connect_timeout,
            get_info=NONE,
        )

    def _connection(self) -> Connection:
        s = self.settings
        return Connection(
            self._server(),
            user=s.bind_dn,
            password=s.bind_password,
            authentication=SIMPLE,
            receive_timeout=s.receive_timeout,
            read_only=True,
            raise_exceptions=False,
        )

    def exists(self, username: str) -> bool:
        """Return True when at least one entry matches the username.

        Raises:
            ValueError: If username is empty
            DirectoryUnavailableError: On connect, tls, bind or search failure
        """
        s = self.settings
        search_filter = build_filter(s.username_attribute, username)
        conn = self._connection()
        try:
            self._open(conn)
            self._bind(conn)
            found = self._search(conn, search_filter)
        finally:
            self._release(conn)
        logger.info("Directory lookup for %r: %s", username, 'found' if found else 'not found')
        return found

    def _open(self, conn: Connection) -> None:
        try:
            conn.open()
        except LDAPException as e:
            # ldap3 reports LDAPS handshake problems as socket open errors
            stage = 'tls' if 'ssl' in str(e).lower() else 'connect'
            logger.warning("Directory %s failed for %s:%s: %s", stage, self.settings.server,
                           self.settings.port, describe_error(e))
            raise DirectoryUnavailableError(stage, describe_error(e))
        if self.settings.use_starttls:
            try:
                ok = conn.start_tls()
            except LDAPException as e:
                logger.warning("Directory StartTLS failed: %s", describe_error(e))
                raise DirectoryUnavailableError('tls', describe_error(e))
            if not ok:
                code = conn.result.get('result') if conn.result else None
                raise DirectoryUnavailableError('tls', f"StartTLS refused ({code})")

    def _bind(self, conn: Connection) -> None:
        try:
            ok = conn.bind()
        except LDAPException as e:
            logger.warning("Directory bind failed: %s", describe_error(e))
            raise DirectoryUnavailableError('bind', describe_error(e))
        if not ok:
            code = conn.result.get('result') if conn.result else None
            logger.warning("Directory bind rejected for %s (result %s)", self.settings.bind_dn, code)
            raise DirectoryUnavailableError('bind', f"bind rejected ({code})")

    def _search(self, conn: Connection, search_filter: str) -> bool:
        s = self.settings
        try:
            conn.search(
                search_base=s.base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=[s.username_attribute],
                size_limit=1,
                time_limit=s.search_time_limit,
            )
        except LDAPException as e:
            logger.warning("Directory search failed: %s", describe_error(e))
            raise DirectoryUnavailableError('search', describe_error(e))
        code = conn.result.get('result') if conn.result else None
        if code not in _SEARCH_OK:
            logger.warning("Directory search under %s returned result %s", s.base_dn, code)
            raise DirectoryUnavailableError('search', f"search failed ({code})")
        return len(conn.entries) > 0

    def _release(self, conn: Connection) -> None:
        try:
            conn.unbind()
        except LDAPException as e:
            logger.debug(f"Error releasing directory session: {e}")

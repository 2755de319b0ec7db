"""Immutable connection settings for the directory and the mail relay.

Built once from the Flask config in the application factory and handed to
the checker, the notifier and the pipeline. Nothing downstream reads the
environment or ``current_app.config`` while a request is being processed.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

_ATTRIBUTE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")


def split_host_port(server: str, default_port: int) -> Tuple[str, int]:
    """Split ``host[:port]`` or ``[ipv6]:port`` into its parts.

    Example: "smtp.example.com:2525" -> ("smtp.example.com", 2525)
             "[2001:db8::25]:587"   -> ("2001:db8::25", 587)

    Raises:
        ValueError: On a bad port or an IPv6 address without brackets
    """
    server = (server or '').strip()
    if server.startswith('['):
        host, sep, rest = server[1:].partition(']')
        if not sep or (rest and not rest.startswith(':')):
            raise ValueError(f"invalid server address {server!r}")
        port = rest[1:]
        if not port:
            return host, default_port
    elif server.count(':') > 1:
        raise ValueError(f"IPv6 address must be written as [addr]:port, got {server!r}")
    else:
        host, sep, port = server.partition(':')
        if not sep:
            return host, default_port
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid port in server address {server!r}")


@dataclass(frozen=True)
class DirectorySettings:
    server: Optional[str]
    port: int
    bind_dn: Optional[str]
    bind_password: Optional[str] = None
    base_dn: Optional[str] = None
    username_attribute: str = 'cn'
    use_ssl: bool = True
    use_starttls: bool = False
    ca_file: Optional[str] = None
    connect_timeout: int = 10
    receive_timeout: int = 10
    search_time_limit: int = 10

    def __post_init__(self):
        if not _ATTRIBUTE_RE.match(self.username_attribute or ''):
            raise ValueError(f"invalid LDAP attribute name {self.username_attribute!r}")

    def __repr__(self) -> str:
        return (f"DirectorySettings(server={self.server!r}, port={self.port}, "
                f"base_dn={self.base_dn!r}, username_attribute={self.username_attribute!r})")

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> 'DirectorySettings':
        return cls(
            server=cfg.get('LDAP_SERVER'),
            port=int(cfg.get('LDAP_PORT') or 636),
            bind_dn=cfg.get('LDAP_BIND_DN'),
            bind_password=cfg.get('LDAP_BIND_PASSWORD'),
            base_dn=cfg.get('LDAP_BASE_DN'),
            username_attribute=cfg.get('LDAP_USERNAME_ATTRIBUTE') or 'cn',
            use_ssl=bool(cfg.get('LDAP_USE_SSL', True)),
            use_starttls=bool(cfg.get('LDAP_USE_STARTTLS', False)),
            ca_file=cfg.get('LDAP_CA_FILE'),
            connect_timeout=int(cfg.get('LDAP_CONNECT_TIMEOUT') or 10),
            receive_timeout=int(cfg.get('LDAP_RECEIVE_TIMEOUT') or 10),
            search_time_limit=int(cfg.get('LDAP_SEARCH_TIME_LIMIT') or 10),
        )

    def missing(self) -> List[str]:
        """Names of required settings that are unset."""
        required = {
            'LDAP_SERVER': self.server,
            'LDAP_BIND_DN': self.bind_dn,
            'LDAP_BIND_PASSWORD': self.bind_password,
            'LDAP_BASE_DN': self.base_dn,
        }
        return [name for name, value in required.items() if not value]


@dataclass(frozen=True)
class MailSettings:
    host: Optional[str]
    port: int
    username: Optional[str]
    password: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None
    ca_file: Optional[str] = None
    connect_timeout: int = 35
    command_timeout: int = 30

    def __repr__(self) -> str:
        return (f"MailSettings(host={self.host!r}, port={self.port}, "
                f"sender={self.sender!r}, recipient={self.recipient!r})")

    @property
    def tls_server_name(self) -> Optional[str]:
        """Hostname used for certificate validation.

        from_config already removed any port suffix and IPv6 brackets, so
        this is the bare host.
        """
        return self.host or None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> 'MailSettings':
        default_port = int(cfg.get('MAIL_PORT') or 587)
        server = cfg.get('MAIL_SERVER')
        if server:
            host, port = split_host_port(server, default_port)
        else:
            host, port = None, default_port
        return cls(
            host=host,
            port=port,
            username=cfg.get('MAIL_USERNAME'),
            password=cfg.get('MAIL_PASSWORD'),
            sender=cfg.get('MAIL_DEFAULT_SENDER'),
            recipient=cfg.get('ACCOUNT_REQUEST_RECIPIENT'),
            ca_file=cfg.get('MAIL_CA_FILE'),
            connect_timeout=int(cfg.get('MAIL_CONNECT_TIMEOUT') or 35),
            command_timeout=int(cfg.get('MAIL_COMMAND_TIMEOUT') or 30),
        )

    def missing(self) -> List[str]:
        required = {
            'MAIL_SERVER': self.host,
            'MAIL_USERNAME': self.username,
            'MAIL_PASSWORD': self.password,
            'MAIL_DEFAULT_SENDER': self.sender,
            'ACCOUNT_REQUEST_RECIPIENT': self.recipient,
        }
        return [name for name, value in required.items() if not value]

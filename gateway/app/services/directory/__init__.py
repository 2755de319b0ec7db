"""Directory (LDAP) existence check."""

from .ldap_checker import DirectoryChecker, LdapDirectoryChecker, build_filter

__all__ = ['DirectoryChecker', 'LdapDirectoryChecker', 'build_filter']

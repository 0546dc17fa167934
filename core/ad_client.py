# =============================================================================
# core/ad_client.py - Active Directory client for account provisioning
# =============================================================================

import logging
from typing import Any, Dict, Iterable, List, Optional

from ldap3 import ALL, MODIFY_REPLACE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import escape_rdn

from core.models import CandidateUser, DirectorySnapshot, ExistingAccount

# userAccountControl flags
NORMAL_ACCOUNT = 0x200
ACCOUNTDISABLE = 0x2

SNAPSHOT_ATTRIBUTES = [
    'employeeID', 'sAMAccountName', 'userPrincipalName',
    'mail', 'mailNickname', 'proxyAddresses'
]


class DirectoryError(Exception):
    """An LDAP operation against Active Directory failed"""


class ActiveDirectoryClient:
    """Active Directory client used by the provisioning workflow"""

    def __init__(self, server_url: str, username: str, password: str, base_dn: str,
                 timeout: int = 30, page_size: int = 1000):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.timeout = timeout
        self.page_size = page_size
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        if not self.connect():
            raise ConnectionError(f"Unable to connect to Active Directory at {self.server_url}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, get_info=ALL, connect_timeout=self.timeout)
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True,
                receive_timeout=self.timeout
            )
            self.logger.info("Successfully connected to Active Directory")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def _require_connection(self) -> Connection:
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")
        return self.connection

    def fetch_snapshot(self) -> DirectorySnapshot:
        """Read the identifying attributes of every user account under the base DN"""
        connection = self._require_connection()

        entries = connection.extend.standard.paged_search(
            search_base=self.base_dn,
            search_filter='(&(objectCategory=person)(objectClass=user))',
            search_scope=SUBTREE,
            attributes=SNAPSHOT_ATTRIBUTES,
            paged_size=self.page_size,
            generator=True
        )

        accounts = []
        for entry in entries:
            if entry.get('type') != 'searchResEntry':
                continue
            accounts.append(self._to_existing_account(entry.get('attributes', {})))

        self.logger.info(f"Captured {len(accounts)} existing accounts from {self.base_dn}")
        return DirectorySnapshot(tuple(accounts))

    @staticmethod
    def _to_existing_account(attributes: Dict[str, Any]) -> ExistingAccount:
        proxies = attributes.get('proxyAddresses') or []
        if isinstance(proxies, str):
            proxies = [proxies]

        return ExistingAccount(
            employee_id=_single_value(attributes.get('employeeID')),
            account_name=_single_value(attributes.get('sAMAccountName')),
            principal_name=_single_value(attributes.get('userPrincipalName')),
            mail=_single_value(attributes.get('mail')),
            mail_nickname=_single_value(attributes.get('mailNickname')),
            proxy_addresses=tuple(str(p) for p in proxies)
        )

    def create_user(self, candidate: CandidateUser, display_name: str, container: str) -> str:
        """
        Create an enabled user that must change its password at next logon.

        The entry is added disabled, given the employee id as its password and
        then enabled. If either follow-up step fails the entry is removed again
        so a retry under another name starts clean.

        Returns:
            The distinguished name of the new account
        """
        connection = self._require_connection()
        dn = f"CN={escape_rdn(display_name)},{container}"

        attributes = {
            'objectClass': ['top', 'person', 'organizationalPerson', 'user'],
            'cn': display_name,
            'displayName': display_name,
            'givenName': candidate.given_name,
            'sn': candidate.surname,
            'sAMAccountName': candidate.account_name,
            'userPrincipalName': candidate.principal_name,
            'mailNickname': candidate.account_name,
            'employeeID': candidate.employee_id,
            'proxyAddresses': [f"SMTP:{candidate.principal_name}"],
            'userAccountControl': NORMAL_ACCOUNT | ACCOUNTDISABLE,
        }
        if candidate.middle_name:
            attributes['initials'] = candidate.middle_name[0]

        if not connection.add(dn, attributes=attributes):
            raise DirectoryError(self._describe_result(f"Failed to create {dn}"))

        try:
            if not connection.extend.microsoft.modify_password(dn, candidate.employee_id):
                raise DirectoryError(self._describe_result(f"Failed to set password on {dn}"))

            changes = {
                'userAccountControl': [(MODIFY_REPLACE, [NORMAL_ACCOUNT])],
                'pwdLastSet': [(MODIFY_REPLACE, [0])],
            }
            if not connection.modify(dn, changes):
                raise DirectoryError(self._describe_result(f"Failed to enable {dn}"))
        except (DirectoryError, LDAPException):
            self.logger.warning(f"Removing partially created account {dn}")
            try:
                if not connection.delete(dn):
                    self.logger.error(self._describe_result(f"Could not remove {dn}"))
            except LDAPException as e:
                self.logger.error(f"Could not remove {dn}: {e}")
            raise

        self.logger.debug(f"Created account {dn}")
        return dn

    def resolve_account_dns(self, account_names: Iterable[str]) -> List[str]:
        """Resolve sAMAccountNames to distinguished names"""
        connection = self._require_connection()
        dns = []

        for name in account_names:
            connection.search(
                search_base=self.base_dn,
                search_filter=f"(sAMAccountName={escape_filter_chars(name)})",
                attributes=['distinguishedName']
            )
            if not connection.entries:
                raise DirectoryError(f"Account {name} not found in AD")
            dns.append(connection.entries[0].entry_dn)

        return dns

    def add_group_members(self, account_names: List[str], group_dns: List[str]) -> None:
        """Add every named account to every group in one batch"""
        if not account_names or not group_dns:
            return

        connection = self._require_connection()
        member_dns = self.resolve_account_dns(account_names)

        if not connection.extend.microsoft.add_members_to_groups(member_dns, list(group_dns)):
            raise DirectoryError(self._describe_result("Failed to add members to groups"))

        self.logger.info(f"Added {len(member_dns)} accounts to {len(group_dns)} groups")

    def _describe_result(self, prefix: str) -> str:
        result = self.connection.result if self.connection else None
        if not result:
            return prefix
        description = result.get('description', '')
        message = result.get('message', '')
        return f"{prefix}: {description} {message}".strip()


def _single_value(value: Any) -> str:
    """Flatten an ldap3 attribute value to a string"""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return str(value)

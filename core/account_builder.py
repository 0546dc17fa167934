# =============================================================================
# core/account_builder.py - Directory account creation with name fallback
# =============================================================================

import logging
import re

from ldap3.core.exceptions import LDAPException

from core.ad_client import DirectoryError
from core.models import (CandidateUser, ErrorRecord, OrganizationalPlacement,
                         ResultRecord, SuccessRecord)


def build_display_name(candidate: CandidateUser) -> str:
    """Format 'Surname, Given M.' with the middle initial when present"""
    name = f"{candidate.surname}, {candidate.given_name}"
    if candidate.middle_name:
        name += f" {candidate.middle_name[0]}."
    return name


def extract_digits(value: str) -> str:
    return re.sub(r'\D', '', value)


class AccountBuilder:
    """Creates directory accounts for candidates that passed duplicate detection"""

    def __init__(self, ad_client):
        self.ad_client = ad_client
        self.logger = logging.getLogger(self.__class__.__name__)

    def build(self, candidate: CandidateUser, placement: OrganizationalPlacement) -> ResultRecord:
        """
        Create the account, retrying once with a disambiguated name.

        Two people with the same given and family name collide on the
        container's CN. The retry appends the digits of the principal name,
        e.g. 'Doe, John - 1124' for johndoe1124@example.com.
        """
        display_name = build_display_name(candidate)

        try:
            self.ad_client.create_user(candidate, display_name, placement.container)
        except (DirectoryError, LDAPException) as first_error:
            digits = extract_digits(candidate.principal_name)
            if not digits:
                self.logger.warning(f"Failed to create {candidate.account_name}: {first_error}")
                return self._error(candidate, first_error)

            retry_name = f"{display_name} - {digits}"
            self.logger.info(
                f"Creating {candidate.account_name} as '{display_name}' failed, retrying as '{retry_name}'"
            )
            try:
                self.ad_client.create_user(candidate, retry_name, placement.container)
            except (DirectoryError, LDAPException) as retry_error:
                self.logger.warning(f"Failed to create {candidate.account_name}: {retry_error}")
                return self._error(candidate, retry_error)

        self.logger.info(f"Created account {candidate.account_name} ({candidate.employee_id})")
        return SuccessRecord(
            employee_id=candidate.employee_id,
            account_name=candidate.account_name,
            email=candidate.principal_name,
            first_name=candidate.given_name,
            last_name=candidate.surname
        )

    @staticmethod
    def _error(candidate: CandidateUser, error: Exception) -> ErrorRecord:
        return ErrorRecord(
            employee_id=candidate.employee_id,
            account_name=candidate.account_name,
            errors=(str(error),)
        )

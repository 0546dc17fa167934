"""Shared pytest fixtures: an in-memory directory and mailer."""

import pytest

from core.ad_client import DirectoryError
from core.models import (AccountType, CandidateUser, DirectorySnapshot, ExistingAccount,
                         OrganizationalPlacement)

STAFF_OU = "OU=Staff,DC=example,DC=com"
STUDENT_OU = "OU=Students,DC=example,DC=com"


class FakeDirectoryClient:
    """In-memory stand-in for ActiveDirectoryClient that rejects a repeated CN in the same container"""

    def __init__(self, snapshot=None, group_error=None, fail_message=None):
        self.snapshot = snapshot or DirectorySnapshot()
        self.group_error = group_error
        self.fail_message = fail_message
        self.attempts = []
        self.created = []
        self.group_calls = []
        self.snapshot_calls = 0
        self.entered = False

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.entered = False

    def fetch_snapshot(self):
        self.snapshot_calls += 1
        return self.snapshot

    def create_user(self, candidate, display_name, container):
        self.attempts.append((candidate.account_name, display_name, container))
        if self.fail_message:
            raise DirectoryError(self.fail_message)
        if any(name == display_name and ou == container for _, name, ou in self.created):
            raise DirectoryError(f"Failed to create CN={display_name},{container}: entryAlreadyExists")
        self.created.append((candidate.account_name, display_name, container))
        return f"CN={display_name},{container}"

    def add_group_members(self, account_names, group_dns):
        self.group_calls.append((list(account_names), list(group_dns)))
        if self.group_error:
            raise DirectoryError(self.group_error)


class FakeMailer:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, subject, html_body, text_body):
        if self.error:
            raise self.error
        self.sent.append((subject, html_body, text_body))


@pytest.fixture
def make_candidate():
    def _make(employee_id="1234567", account_name="johndoe",
              principal_name="johndoe@example.com", given_name="John",
              surname="Doe", middle_name="Q", account_type=AccountType.STAFF):
        return CandidateUser(
            employee_id=employee_id,
            account_name=account_name,
            principal_name=principal_name,
            given_name=given_name,
            surname=surname,
            middle_name=middle_name,
            account_type=account_type
        )
    return _make


@pytest.fixture
def placements():
    return {
        AccountType.STAFF: OrganizationalPlacement(
            container=STAFF_OU,
            groups=("CN=All Staff,OU=Groups,DC=example,DC=com",)
        ),
        AccountType.STUDENT: OrganizationalPlacement(
            container=STUDENT_OU,
            groups=("CN=All Students,OU=Groups,DC=example,DC=com",
                    "CN=Student WiFi,OU=Groups,DC=example,DC=com")
        ),
    }


@pytest.fixture
def existing_snapshot():
    return DirectorySnapshot((
        ExistingAccount(
            employee_id="1234567",
            account_name="jsmith",
            principal_name="jsmith@example.com",
            mail="jane.smith@example.com",
            mail_nickname="jane.smith",
            proxy_addresses=("SMTP:jsmith@example.com", "smtp:Legacy.User@example.com")
        ),
    ))


@pytest.fixture
def directory():
    return FakeDirectoryClient()


@pytest.fixture
def mailer():
    return FakeMailer()

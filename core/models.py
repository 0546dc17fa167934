# =============================================================================
# core/models.py - Account provisioning data models
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import FrozenSet, List, Optional, Tuple, Union

MAX_ACCOUNT_NAME_LENGTH = 20


class AccountType(Enum):
    """Account-type indicator from the import file"""
    STAFF = "Staff"
    STUDENT = "Student"


@dataclass(frozen=True)
class CandidateUser:
    """One import row describing an account to build"""
    employee_id: str
    account_name: str
    principal_name: str
    given_name: str
    surname: str
    account_type: AccountType
    middle_name: Optional[str] = None

    def __post_init__(self):
        if not self.employee_id:
            raise ValueError("Candidate requires an employee id")
        if len(self.account_name) > MAX_ACCOUNT_NAME_LENGTH:
            raise ValueError(
                f"Account name '{self.account_name}' exceeds {MAX_ACCOUNT_NAME_LENGTH} characters"
            )


@dataclass(frozen=True)
class ExistingAccount:
    """Identifying attributes of an account already in the directory"""
    employee_id: str = ""
    account_name: str = ""
    principal_name: str = ""
    mail: str = ""
    mail_nickname: str = ""
    proxy_addresses: Tuple[str, ...] = ()


def _folded(values) -> FrozenSet[str]:
    return frozenset(value.casefold() for value in values if value)


@dataclass(frozen=True)
class DirectorySnapshot:
    """Existing accounts captured once per run"""
    accounts: Tuple[ExistingAccount, ...] = ()

    def __len__(self) -> int:
        return len(self.accounts)

    @cached_property
    def employee_ids(self) -> FrozenSet[str]:
        return _folded(a.employee_id for a in self.accounts)

    @cached_property
    def account_names(self) -> FrozenSet[str]:
        return _folded(a.account_name for a in self.accounts)

    @cached_property
    def principal_names(self) -> FrozenSet[str]:
        return _folded(a.principal_name for a in self.accounts)

    @cached_property
    def mails(self) -> FrozenSet[str]:
        return _folded(a.mail for a in self.accounts)

    @cached_property
    def mail_nicknames(self) -> FrozenSet[str]:
        return _folded(a.mail_nickname for a in self.accounts)

    @cached_property
    def proxy_addresses(self) -> Tuple[str, ...]:
        return tuple(
            address.casefold()
            for account in self.accounts
            for address in account.proxy_addresses
            if address
        )


@dataclass(frozen=True)
class SuccessRecord:
    """Outcome for an account that was created"""
    employee_id: str
    account_name: str
    email: str
    first_name: str
    last_name: str

    def __post_init__(self):
        if not self.employee_id:
            raise ValueError("SuccessRecord requires an employee id")


@dataclass(frozen=True)
class ErrorRecord:
    """Outcome for a candidate that could not be built"""
    employee_id: str
    account_name: str
    errors: Tuple[str, ...]

    def __post_init__(self):
        if not self.employee_id:
            raise ValueError("ErrorRecord requires an employee id")
        if not self.errors:
            raise ValueError("ErrorRecord requires at least one error message")
        # Accept any sequence but store it immutably
        object.__setattr__(self, "errors", tuple(self.errors))


ResultRecord = Union[SuccessRecord, ErrorRecord]


@dataclass(frozen=True)
class OrganizationalPlacement:
    """Target container and group memberships for one account type"""
    container: str
    groups: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Report:
    """Rendered partition report"""
    subject: str
    html: str
    text: str


@dataclass
class PartitionResult:
    """Outcome of one account-type partition of an import file"""
    label: str
    successes: List[SuccessRecord] = field(default_factory=list)
    errors: List[ErrorRecord] = field(default_factory=list)
    group_error: Optional[str] = None
    report: Optional[Report] = None

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.errors)


@dataclass
class RunSummary:
    """Statistics for one ingestion run"""
    skipped: bool = False
    processed_files: List[str] = field(default_factory=list)
    failed_files: List[Tuple[str, str]] = field(default_factory=list)
    partitions: List[PartitionResult] = field(default_factory=list)

    @property
    def accounts_built(self) -> int:
        return sum(len(p.successes) for p in self.partitions)

    @property
    def accounts_failed(self) -> int:
        return sum(len(p.errors) for p in self.partitions)

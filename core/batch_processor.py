# =============================================================================
# core/batch_processor.py - Per account-type partition workflow
# =============================================================================

import logging
import smtplib
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ldap3.core.exceptions import LDAPException

from core.account_builder import AccountBuilder
from core.ad_client import ActiveDirectoryClient, DirectoryError
from core.duplicate_detector import find_duplicate_reasons
from core.models import (AccountType, CandidateUser, DirectorySnapshot, ErrorRecord,
                         OrganizationalPlacement, PartitionResult, SuccessRecord)
from core.reporter import ReportRenderer
from utils.mailer import Mailer


class BatchState(Enum):
    """Stages a partition moves through"""
    INITIALIZED = "initialized"
    PROCESSING = "processing"
    GROUP_ASSIGNMENT = "group_assignment"
    REPORTING = "reporting"
    DONE = "done"


@dataclass
class ProvisioningContext:
    """Everything a partition needs, shared for the length of one run"""
    ad_client: ActiveDirectoryClient
    snapshot: DirectorySnapshot
    placements: Dict[AccountType, OrganizationalPlacement]
    reporter: ReportRenderer = field(default_factory=ReportRenderer)
    mailer: Optional[Mailer] = None
    console: bool = False


class BatchProcessor:
    """Drives one account-type partition from candidates to report"""

    def __init__(self, context: ProvisioningContext):
        self.context = context
        self.builder = AccountBuilder(context.ad_client)
        self.state = BatchState.INITIALIZED
        self.logger = logging.getLogger(self.__class__.__name__)

    def _transition(self, state: BatchState) -> None:
        self.state = state
        self.logger.debug(f"Partition state -> {state.value}")

    def process(self, account_type: AccountType,
                candidates: Sequence[CandidateUser]) -> PartitionResult:
        """Build, group and report every candidate of one account type"""
        self._transition(BatchState.INITIALIZED)
        result = PartitionResult(label=account_type.value)
        placement = self.context.placements[account_type]
        self.logger.info(f"Processing {len(candidates)} {account_type.value} candidates")

        self._transition(BatchState.PROCESSING)
        for candidate in candidates:
            reasons = find_duplicate_reasons(candidate, self.context.snapshot)
            if reasons:
                self.logger.warning(f"Skipping {candidate.account_name}: {'; '.join(reasons[1:])}")
                result.errors.append(ErrorRecord(
                    employee_id=candidate.employee_id,
                    account_name=candidate.account_name,
                    errors=tuple(reasons)
                ))
                continue

            record = self.builder.build(candidate, placement)
            if isinstance(record, SuccessRecord):
                result.successes.append(record)
            else:
                result.errors.append(record)

        self._transition(BatchState.GROUP_ASSIGNMENT)
        if result.successes and placement.groups:
            result.group_error = self._assign_groups(result.successes, placement)

        self._transition(BatchState.REPORTING)
        self._report(result)

        self._transition(BatchState.DONE)
        self.logger.info(
            f"{account_type.value} partition complete: {len(result.successes)} built, "
            f"{len(result.errors)} errors"
        )
        return result

    def report_rejected(self, label: str, errors: List[ErrorRecord]) -> PartitionResult:
        """Report rows that could not be routed to an account type"""
        result = PartitionResult(label=label, errors=list(errors))
        self._transition(BatchState.REPORTING)
        self._report(result)
        self._transition(BatchState.DONE)
        return result

    def _assign_groups(self, successes: List[SuccessRecord],
                       placement: OrganizationalPlacement) -> Optional[str]:
        account_names = [record.account_name for record in successes]
        try:
            self.context.ad_client.add_group_members(account_names, list(placement.groups))
        except (DirectoryError, LDAPException, ConnectionError) as e:
            self.logger.error(f"Group assignment failed for {len(account_names)} accounts: {e}")
            return str(e)
        return None

    def _report(self, result: PartitionResult) -> None:
        report = self.context.reporter.render(
            result.label, result.successes, result.errors, result.group_error
        )
        result.report = report

        if self.context.console:
            print(report.subject)
            print(report.text)

        if self.context.mailer is None:
            self.logger.debug("No mailer configured, report not sent")
            return

        try:
            self.context.mailer.send(report.subject, report.html, report.text)
        except (smtplib.SMTPException, OSError) as e:
            self.logger.error(f"Failed to send report '{report.subject}': {e}")

# =============================================================================
# core/duplicate_detector.py - Duplicate account detection
# =============================================================================

from typing import List

from core.models import CandidateUser, DirectorySnapshot

DUPLICATE_HEADER = "Another account exists with matching properties:"


def find_duplicate_reasons(candidate: CandidateUser, snapshot: DirectorySnapshot) -> List[str]:
    """
    Check a candidate against the accounts captured before the run.

    Every rule is evaluated so the report lists all matching properties.

    Returns:
        Empty list when no existing account matches, otherwise the header
        line followed by one reason per matching property
    """
    employee_id = candidate.employee_id.casefold()
    account_name = candidate.account_name.casefold()
    principal_name = candidate.principal_name.casefold()

    reasons = []
    if employee_id in snapshot.employee_ids:
        reasons.append(f"EmployeeID {candidate.employee_id}")
    if account_name in snapshot.account_names:
        reasons.append(f"SamAccountName {candidate.account_name}")
    if principal_name in snapshot.principal_names:
        reasons.append(f"UserPrincipalName {candidate.principal_name}")
    if principal_name in snapshot.mails:
        reasons.append(f"Mail {candidate.principal_name}")
    if account_name in snapshot.mail_nicknames:
        reasons.append(f"MailNickname {candidate.account_name}")
    if principal_name and any(principal_name in address for address in snapshot.proxy_addresses):
        reasons.append(f"ProxyAddresses {candidate.principal_name}")

    if not reasons:
        return []
    return [DUPLICATE_HEADER] + reasons

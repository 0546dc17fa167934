"""Tests for the per account-type partition workflow."""

import smtplib

from conftest import FakeDirectoryClient, FakeMailer
from core.batch_processor import BatchProcessor, BatchState, ProvisioningContext
from core.models import AccountType, ErrorRecord


def _processor(directory, placements, mailer=None, console=False):
    context = ProvisioningContext(
        ad_client=directory,
        snapshot=directory.fetch_snapshot(),
        placements=placements,
        mailer=mailer,
        console=console
    )
    return BatchProcessor(context)


class TestBatchProcessor:
    def test_starts_initialized(self, placements, directory):
        assert _processor(directory, placements).state is BatchState.INITIALIZED

    def test_builds_groups_and_reports(self, make_candidate, placements, directory, mailer):
        candidates = [
            make_candidate(employee_id="3", account_name="bjones", principal_name="bjones@example.com",
                           given_name="Bob", surname="Jones", account_type=AccountType.STUDENT),
            make_candidate(employee_id="1", account_name="asmith", principal_name="asmith@example.com",
                           given_name="Ann", surname="Smith", account_type=AccountType.STUDENT),
        ]
        processor = _processor(directory, placements, mailer)

        result = processor.process(AccountType.STUDENT, candidates)

        assert [r.account_name for r in result.successes] == ["bjones", "asmith"]
        assert result.errors == []
        assert directory.group_calls == [
            (["bjones", "asmith"], list(placements[AccountType.STUDENT].groups))
        ]
        assert [subject for subject, _, _ in mailer.sent] == ["Student Accounts Built"]
        assert processor.state is BatchState.DONE

    def test_duplicate_skips_creation(self, make_candidate, placements, existing_snapshot, mailer):
        directory = FakeDirectoryClient(snapshot=existing_snapshot)
        processor = _processor(directory, placements, mailer)

        result = processor.process(AccountType.STAFF, [make_candidate()])

        assert directory.attempts == []
        assert directory.group_calls == []
        assert len(result.errors) == 1
        assert result.errors[0].errors[0] == "Another account exists with matching properties:"
        assert "EmployeeID 1234567" in result.errors[0].errors
        assert mailer.sent[0][0] == "Staff Accounts Built - Including Error(s)"

    def test_every_candidate_yields_one_record(self, make_candidate, placements, existing_snapshot):
        directory = FakeDirectoryClient(snapshot=existing_snapshot)
        candidates = [
            make_candidate(),
            make_candidate(employee_id="2", account_name="johndoe2", principal_name="johndoe2@example.com"),
            make_candidate(employee_id="3", account_name="johndoe3", principal_name="johndoe3@example.com"),
            make_candidate(employee_id="4", account_name="johndoe", principal_name="jd@example.com",
                           middle_name=None),
        ]

        result = _processor(directory, placements).process(AccountType.STAFF, candidates)

        assert result.total == len(candidates)
        # The first is a duplicate; the third collides with the second on display name
        assert [name for _, name, _ in directory.created] == [
            "Doe, John Q.", "Doe, John Q. - 3", "Doe, John"
        ]
        assert len(result.successes) == 3

    def test_same_run_collisions_are_not_detected(self, make_candidate, placements, directory):
        candidates = [
            make_candidate(employee_id="10", account_name="dup", principal_name="dup1@example.com"),
            make_candidate(employee_id="10", account_name="dup", principal_name="dup2@example.com"),
        ]

        _processor(directory, placements).process(AccountType.STAFF, candidates)

        assert len(directory.attempts) == 3

    def test_group_failure_still_reports(self, make_candidate, placements, mailer):
        directory = FakeDirectoryClient(group_error="Failed to add members to groups: noSuchObject")
        processor = _processor(directory, placements, mailer)

        result = processor.process(AccountType.STAFF, [make_candidate()])

        assert result.group_error == "Failed to add members to groups: noSuchObject"
        assert len(result.successes) == 1
        assert len(mailer.sent) == 1
        assert "Group assignment failed" in mailer.sent[0][2]

    def test_mail_failure_is_not_fatal(self, make_candidate, placements, directory):
        mailer = FakeMailer(error=smtplib.SMTPServerDisconnected("gone"))
        result = _processor(directory, placements, mailer).process(AccountType.STAFF, [make_candidate()])

        assert len(result.successes) == 1
        assert result.report.subject == "Staff Accounts Built"

    def test_console_mirror(self, make_candidate, placements, directory, capsys):
        _processor(directory, placements, console=True).process(AccountType.STAFF, [make_candidate()])

        output = capsys.readouterr().out
        assert "Staff Accounts Built" in output
        assert "Account built: 1" in output

    def test_report_rejected(self, placements, directory, mailer):
        processor = _processor(directory, placements, mailer)
        rejected = [ErrorRecord("9", "contractor", ("Unrecognized account type indicator 'Faculty'",))]

        result = processor.report_rejected("Unrecognized", rejected)

        assert result.total == 1
        assert mailer.sent[0][0] == "Unrecognized Accounts Built - Including Error(s)"
        assert directory.attempts == []

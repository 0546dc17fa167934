# =============================================================================
# core/ingestion.py - Import file discovery, parsing and archival
# =============================================================================

import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from core.batch_processor import BatchProcessor, ProvisioningContext
from core.models import (MAX_ACCOUNT_NAME_LENGTH, AccountType, CandidateUser, ErrorRecord,
                         OrganizationalPlacement, RunSummary)
from core.reporter import ReportRenderer
from utils.csv_utils import CSVHandler

# Positional layout of an import row
COLUMNS = [
    'employee_id', 'account_name', 'principal_name',
    'given_name', 'middle_name', 'surname', 'indicator'
]
HEADER_MARKER = "Id"
UNRECOGNIZED_LABEL = "Unrecognized"


class MalformedFileError(ValueError):
    """An import file does not follow the positional layout"""


@dataclass
class ParsedFile:
    """Candidates grouped by account type, plus rows that could not be routed"""
    partitions: Dict[AccountType, List[CandidateUser]] = field(default_factory=dict)
    rejected: List[ErrorRecord] = field(default_factory=list)


def parse_candidates(rows: List[List[str]]) -> ParsedFile:
    """Turn positional rows into candidates grouped in first-appearance order"""
    parsed = ParsedFile()
    indicators = {t.value: t for t in AccountType}

    for line_number, row in enumerate(rows, start=1):
        if row and row[0] == HEADER_MARKER:
            continue
        if len(row) < len(COLUMNS):
            raise MalformedFileError(
                f"Row {line_number} has {len(row)} columns, expected {len(COLUMNS)}"
            )

        values = dict(zip(COLUMNS, row))
        account_name = values['account_name'][:MAX_ACCOUNT_NAME_LENGTH]
        account_type = indicators.get(values['indicator'])

        if not values['employee_id']:
            raise MalformedFileError(f"Row {line_number} has no employee id")

        if account_type is None:
            parsed.rejected.append(ErrorRecord(
                employee_id=values['employee_id'],
                account_name=account_name,
                errors=(f"Unrecognized account type indicator '{values['indicator']}'",)
            ))
            continue

        candidate = CandidateUser(
            employee_id=values['employee_id'],
            account_name=account_name,
            principal_name=values['principal_name'],
            given_name=values['given_name'],
            middle_name=values['middle_name'] or None,
            surname=values['surname'],
            account_type=account_type
        )
        parsed.partitions.setdefault(account_type, []).append(candidate)

    return parsed


class IngestionDriver:
    """Runs every pending import file through the provisioning workflow"""

    def __init__(self, input_dir: str, archive_dir: str,
                 client_factory: Callable,
                 placements: Dict[AccountType, OrganizationalPlacement],
                 mailer=None,
                 sync_trigger: Optional[Callable[[], None]] = None,
                 console: bool = False,
                 file_suffix: str = ".csv",
                 reporter: Optional[ReportRenderer] = None,
                 archive_timestamp: Optional[Callable[[Path], datetime]] = None):
        self.input_dir = Path(input_dir)
        self.archive_dir = Path(archive_dir)
        self.client_factory = client_factory
        self.placements = placements
        self.mailer = mailer
        self.sync_trigger = sync_trigger
        self.console = console
        self.file_suffix = file_suffix.lower()
        self.reporter = reporter or ReportRenderer()
        self.archive_timestamp = archive_timestamp or CSVHandler.creation_time
        self.logger = logging.getLogger(self.__class__.__name__)

    def discover_files(self) -> List[Path]:
        if not self.input_dir.is_dir():
            self.logger.warning(f"Input directory {self.input_dir} does not exist")
            return []
        return sorted(
            p for p in self.input_dir.iterdir()
            if p.is_file() and p.suffix.lower() == self.file_suffix
        )

    def run(self) -> RunSummary:
        """Process all pending files, then trigger the identity sync once"""
        summary = RunSummary()
        files = self.discover_files()

        if not files:
            self.logger.info(f"No import files found in {self.input_dir}")
            summary.skipped = True
            return summary

        self.logger.info(f"Found {len(files)} import files in {self.input_dir}")

        try:
            with self.client_factory() as ad_client:
                context = ProvisioningContext(
                    ad_client=ad_client,
                    snapshot=ad_client.fetch_snapshot(),
                    placements=self.placements,
                    reporter=self.reporter,
                    mailer=self.mailer,
                    console=self.console
                )
                processor = BatchProcessor(context)

                for file_path in files:
                    self.process_file(file_path, processor, summary)
        finally:
            if self.sync_trigger is not None:
                self.sync_trigger()

        self.logger.info(
            f"Run complete: {len(summary.processed_files)} files processed, "
            f"{len(summary.failed_files)} failed, {summary.accounts_built} accounts built, "
            f"{summary.accounts_failed} errors"
        )
        return summary

    def process_file(self, file_path: Path, processor: BatchProcessor, summary: RunSummary) -> None:
        self.logger.info(f"Processing import file {file_path.name}")

        try:
            parsed = parse_candidates(CSVHandler.read_rows(str(file_path)))
        except (MalformedFileError, OSError, UnicodeDecodeError, csv.Error) as e:
            self.logger.error(f"Skipping {file_path.name}: {e}")
            summary.failed_files.append((file_path.name, str(e)))
            return

        for account_type, candidates in parsed.partitions.items():
            summary.partitions.append(processor.process(account_type, candidates))

        if parsed.rejected:
            self.logger.warning(
                f"{len(parsed.rejected)} rows in {file_path.name} have an unrecognized indicator"
            )
            summary.partitions.append(processor.report_rejected(UNRECOGNIZED_LABEL, parsed.rejected))

        try:
            CSVHandler.archive_file(file_path, self.archive_dir, self.archive_timestamp(file_path))
        except OSError as e:
            self.logger.error(f"Processed {file_path.name} but could not archive it: {e}")
            summary.failed_files.append((file_path.name, f"Archive failed: {e}"))
            return
        summary.processed_files.append(file_path.name)

# =============================================================================
# utils/csv_utils.py - CSV and import file utilities
# =============================================================================

import csv
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class CSVHandler:
    """Utilities for reading and archiving import files"""

    @staticmethod
    def read_rows(file_path: str, encoding: str = 'utf-8-sig',
                  delimiter: str = ',') -> List[List[str]]:
        """Read a positional CSV file, dropping blank lines"""
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                reader = csv.reader(file, delimiter=delimiter)
                rows = [
                    [cell.strip() for cell in row]
                    for row in reader
                    if any(cell.strip() for cell in row)
                ]

            logger.info(f"Successfully read {len(rows)} rows from {file_path}")
            return rows

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise
        except Exception as e:
            logger.error(f"Error reading CSV: {e}")
            raise

    @staticmethod
    def creation_time(file_path: Path) -> datetime:
        """File creation time where the platform records it, else last status change"""
        stat = os.stat(file_path)
        timestamp = getattr(stat, 'st_birthtime', stat.st_ctime)
        return datetime.fromtimestamp(timestamp)

    @staticmethod
    def archive_file(file_path: Path, archive_dir: Path,
                     timestamp: Optional[datetime] = None) -> Path:
        """Move a processed file into the archive as '{yyyyMMdd-HHmmss}_{name}'"""
        logger = logging.getLogger(__name__)
        file_path = Path(file_path)
        archive_dir = Path(archive_dir)

        if timestamp is None:
            timestamp = CSVHandler.creation_time(file_path)

        archive_dir.mkdir(parents=True, exist_ok=True)
        destination = archive_dir / f"{timestamp.strftime(ARCHIVE_TIMESTAMP_FORMAT)}_{file_path.name}"

        shutil.move(str(file_path), str(destination))
        logger.info(f"Archived {file_path} to {destination}")
        return destination

# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from functools import partial
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.ingestion import IngestionDriver
from utils.config import Config
from utils.mailer import Mailer
from utils.sync import trigger_directory_sync


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"account_builder_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always gets DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def build_mailer(config: Config):
    """Create the report mailer, or None when SMTP is not configured"""
    if not config.mail_configured():
        logging.getLogger(__name__).warning("SMTP not configured, reports will not be emailed")
        return None

    return Mailer(
        config.smtp_server,
        config.smtp_port,
        config.mail_from,
        config.mail_to,
        username=config.smtp_username,
        password=config.smtp_password,
        starttls=config.smtp_starttls,
        timeout=config.smtp_timeout
    )


def build_driver(config: Config, console: bool = False) -> IngestionDriver:
    client_factory = partial(
        ActiveDirectoryClient,
        config.ad_server, config.ad_username,
        config.ad_password, config.base_dn,
        timeout=config.ldap_timeout
    )

    return IngestionDriver(
        input_dir=config.input_dir,
        archive_dir=config.archive_dir,
        client_factory=client_factory,
        placements=config.placements,
        mailer=build_mailer(config),
        sync_trigger=partial(trigger_directory_sync, config.sync_command, config.sync_timeout),
        console=console
    )


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(description="Build Active Directory accounts from CSV import files")
    parser.add_argument('--console', action='store_true',
                        help='Also print each report to the console')
    parser.add_argument('--input-dir', help='Override INPUT_DIR')
    parser.add_argument('--archive-dir', help='Override ARCHIVE_DIR')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    args = parser.parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Command line overrides take precedence over .env
    config = Config()
    if args.input_dir:
        config.override("INPUT_DIR", args.input_dir)
    if args.archive_dir:
        config.override("ARCHIVE_DIR", args.archive_dir)

    if not config.validate_config():
        missing_vars = config.get_missing_vars()
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    try:
        summary = build_driver(config, console=args.console).run()
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)

    if summary.failed_files:
        sys.exit(2)


if __name__ == "__main__":
    main()

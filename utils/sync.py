# =============================================================================
# utils/sync.py - Downstream identity sync trigger
# =============================================================================

import logging
import os
import shlex
import subprocess
from typing import Optional


def trigger_directory_sync(command: Optional[str], timeout: int = 300) -> None:
    """Start the configured identity sync; the outcome is only logged"""
    logger = logging.getLogger(__name__)

    if not command:
        logger.warning("SYNC_COMMAND not configured, skipping directory sync")
        return

    # Windows takes the command line as-is
    args = command if os.name == 'nt' else shlex.split(command)
    logger.info(f"Triggering directory sync: {command}")

    try:
        completed = subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.error(f"Directory sync could not be started: {e}")
        return

    logger.debug(f"Directory sync exited with code {completed.returncode}")

# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

from core.models import AccountType, OrganizationalPlacement


def _split(value: Optional[str], separator: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(separator) if item.strip()]


def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    def override(self, name: str, value: str) -> None:
        """Replace a loaded setting for the rest of the process"""
        os.environ[name] = value

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def base_dn(self) -> Optional[str]:
        return os.getenv("BASE_DN")

    @property
    def ldap_timeout(self) -> int:
        return _int("LDAP_TIMEOUT", 30)

    @property
    def input_dir(self) -> Optional[str]:
        return os.getenv("INPUT_DIR")

    @property
    def archive_dir(self) -> Optional[str]:
        return os.getenv("ARCHIVE_DIR")

    @property
    def staff_ou(self) -> Optional[str]:
        return os.getenv("STAFF_OU")

    @property
    def student_ou(self) -> Optional[str]:
        return os.getenv("STUDENT_OU")

    @property
    def placements(self) -> Dict[AccountType, OrganizationalPlacement]:
        """Target OU and groups per account type; group DNs are ';'-separated"""
        return {
            AccountType.STAFF: OrganizationalPlacement(
                container=self.staff_ou or "",
                groups=tuple(_split(os.getenv("STAFF_GROUPS"), ";"))
            ),
            AccountType.STUDENT: OrganizationalPlacement(
                container=self.student_ou or "",
                groups=tuple(_split(os.getenv("STUDENT_GROUPS"), ";"))
            ),
        }

    @property
    def smtp_server(self) -> Optional[str]:
        return os.getenv("SMTP_SERVER")

    @property
    def smtp_port(self) -> int:
        return _int("SMTP_PORT", 25)

    @property
    def smtp_username(self) -> Optional[str]:
        return os.getenv("SMTP_USERNAME")

    @property
    def smtp_password(self) -> Optional[str]:
        return os.getenv("SMTP_PASSWORD")

    @property
    def smtp_starttls(self) -> bool:
        return os.getenv("SMTP_STARTTLS", "false").strip().lower() in ("1", "true", "yes")

    @property
    def smtp_timeout(self) -> int:
        return _int("SMTP_TIMEOUT", 30)

    @property
    def mail_from(self) -> Optional[str]:
        return os.getenv("MAIL_FROM")

    @property
    def mail_to(self) -> List[str]:
        return _split(os.getenv("MAIL_TO"), ",")

    @property
    def sync_command(self) -> Optional[str]:
        return os.getenv("SYNC_COMMAND")

    @property
    def sync_timeout(self) -> int:
        return _int("SYNC_TIMEOUT", 300)

    def mail_configured(self) -> bool:
        return bool(self.smtp_server and self.mail_from and self.mail_to)

    def validate_config(self) -> bool:
        """Validate that all required configuration is present"""
        return not self.get_missing_vars()

    def get_missing_vars(self) -> List[str]:
        """Get list of missing configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
            (self.base_dn, "BASE_DN"),
            (self.input_dir, "INPUT_DIR"),
            (self.archive_dir, "ARCHIVE_DIR"),
            (self.staff_ou, "STAFF_OU"),
            (self.student_ou, "STUDENT_OU")
        ]
        return [name for var, name in vars_and_names if not var]

"""Tests for CLI wiring."""

import pytest

import main
from core.ingestion import IngestionDriver
from utils.config import Config
from utils.mailer import Mailer

SETTINGS = {
    "AD_SERVER": "ldaps://dc01", "AD_USERNAME": "svc", "AD_PASSWORD": "secret",
    "BASE_DN": "DC=example,DC=com", "INPUT_DIR": "import", "ARCHIVE_DIR": "archive",
    "STAFF_OU": "OU=Staff,DC=example,DC=com", "STUDENT_OU": "OU=Students,DC=example,DC=com",
}


@pytest.fixture
def config(monkeypatch):
    monkeypatch.setattr("utils.config.load_dotenv", lambda: None)
    for name in ("SMTP_SERVER", "MAIL_FROM", "MAIL_TO"):
        monkeypatch.delenv(name, raising=False)
    for name, value in SETTINGS.items():
        monkeypatch.setenv(name, value)
    return Config()


def test_no_mailer_without_smtp(config):
    assert main.build_mailer(config) is None


def test_mailer_from_config(config, monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.example.com")
    monkeypatch.setenv("MAIL_FROM", "builder@example.com")
    monkeypatch.setenv("MAIL_TO", "helpdesk@example.com")

    mailer = main.build_mailer(config)

    assert isinstance(mailer, Mailer)
    assert mailer.recipients == ["helpdesk@example.com"]


def test_build_driver(config):
    driver = main.build_driver(config, console=True)

    assert isinstance(driver, IngestionDriver)
    assert driver.console
    assert str(driver.input_dir) == "import"


def test_missing_config_exits(monkeypatch):
    monkeypatch.setattr("utils.config.load_dotenv", lambda: None)
    monkeypatch.setattr("main.setup_logging", lambda level: None)
    monkeypatch.setattr("sys.argv", ["account-builder"])
    for name in SETTINGS:
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit) as exc:
        main.main()
    assert exc.value.code == 1

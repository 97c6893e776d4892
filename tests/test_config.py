"""Tests for settings, per-user locks and logging setup."""

import gc
import json
import logging
import threading
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError as SettingsValidationError

from finance_ledger.config import get_settings, validate_all_settings
from finance_ledger.config.settings import AppSettings, AuthSettings, LedgerSettings, StorageSettings
from finance_ledger.locks import UserLockRegistry
from finance_ledger.logger import configure_logging, get_logger


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for var in ("FINANCE_STORAGE_DATA_DIR", "FINANCE_LEDGER_BUDGET_WARNING_THRESHOLD", "FINANCE_AUTH_BCRYPT_ROUNDS"):
            monkeypatch.delenv(var, raising=False)
        assert StorageSettings().data_dir == Path("data")
        assert LedgerSettings().budget_warning_threshold == 0.8
        assert AuthSettings().bcrypt_rounds == 12

    def test_env_prefixes(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FINANCE_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("FINANCE_LEDGER_MAX_AMOUNT", "500")
        monkeypatch.setenv("FINANCE_AUTH_BCRYPT_ROUNDS", "5")

        settings = get_settings()
        assert settings.storage.data_dir == tmp_path
        assert settings.ledger.max_amount == Decimal("500")
        assert settings.auth.bcrypt_rounds == 5

    def test_invalid_values_rejected(self, monkeypatch):
        monkeypatch.setenv("FINANCE_LEDGER_BUDGET_WARNING_THRESHOLD", "1.5")
        with pytest.raises(SettingsValidationError):
            LedgerSettings()

    def test_log_level_normalised(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("FINANCE_AUTH_BCRYPT_ROUNDS", "2")
        status = validate_all_settings()
        assert status["storage"] is True
        assert status["auth"] is False
        assert "auth_error" in status

    def test_data_dir_must_not_be_a_file(self, monkeypatch, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        monkeypatch.setenv("FINANCE_STORAGE_DATA_DIR", str(target))
        with pytest.raises(SettingsValidationError):
            StorageSettings()


class TestUserLocks:
    """Tests for the per-user lock registry."""

    def test_same_user_same_lock(self):
        locks = UserLockRegistry()
        assert locks.lock_for("alice") is locks.lock_for("alice")
        assert locks.lock_for("alice") is not locks.lock_for("bob")

    def test_hold_is_reentrant(self):
        locks = UserLockRegistry()
        with locks.hold("alice", "bob"):
            with locks.hold("bob", "alice", "alice"):
                pass

    def test_hold_blocks_other_threads(self):
        locks = UserLockRegistry()
        acquired = []

        def contender():
            with locks.hold("alice"):
                acquired.append(True)

        with locks.hold("alice", ""):
            thread = threading.Thread(target=contender)
            thread.start()
            thread.join(timeout=0.2)
            assert acquired == []
        thread.join(timeout=5)
        assert acquired == [True]

    def test_locks_released_on_error(self):
        locks = UserLockRegistry()
        lock = locks.lock_for("alice")
        with pytest.raises(RuntimeError):
            with locks.hold("alice"):
                raise RuntimeError("boom")

        result = []
        thread = threading.Thread(
            target=lambda: result.append(lock.acquire(blocking=False))
        )
        thread.start()
        thread.join(timeout=5)
        assert result == [True]

    def test_released_locks_are_dropped(self):
        locks = UserLockRegistry()
        kept = locks.lock_for("alice")
        for i in range(100):
            with locks.hold(f"ghost{i}"):
                pass
        gc.collect()

        assert len(locks) == 1
        assert locks.lock_for("alice") is kept


class TestLogging:
    def test_events_rendered_as_json(self, capsys):
        configure_logging("INFO", json_output=True)
        try:
            get_logger("tests.logging").info("wallet_saved", user_id="alice")
            err = capsys.readouterr().err
        finally:
            logging.getLogger().handlers.clear()

        event = json.loads(err.strip().splitlines()[-1])
        assert event["event"] == "wallet_saved"
        assert event["user_id"] == "alice"
        assert event["level"] == "info"

    def test_console_renderer_swaps_only_the_output(self, capsys):
        configure_logging("INFO", json_output=False)
        try:
            get_logger("tests.logging").info("wallet_saved", user_id="alice")
            err = capsys.readouterr().err
        finally:
            configure_logging("INFO")
            logging.getLogger().handlers.clear()

        line = err.strip().splitlines()[-1]
        assert "wallet_saved" in line
        assert "alice" in line
        with pytest.raises(ValueError):
            json.loads(line)

"""
Configuration loading tests.

Verifies:
- The packaged default set matches the kernel defaults
- Unknown keys and invalid values are rejected with ValueError
- Checksums are deterministic and change with content
- get_active_config() emits LEDGER_CONFIG_TRACE
- Bridges hand the kernel a matching LedgerPolicy and engine kwargs
"""

from decimal import Decimal

import pytest
import yaml

from ledger_config import get_active_config
from ledger_config.bridges import build_engine_kwargs, build_policy
from ledger_config.loader import compute_checksum, load_yaml_file, parse_settings
from ledger_kernel.domain.entries import EntryStatus
from ledger_kernel.domain.policy import LedgerPolicy


@pytest.fixture
def write_config(tmp_path):
    def _write(data, name="ledger.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


class TestDefaultConfig:

    def test_default_set_loads(self):
        settings = get_active_config()

        assert settings.balance_tolerance == Decimal("0.01")
        assert settings.reversal_status == "posted"
        assert settings.code_prefix == "JV"
        assert settings.database.url == "sqlite://"
        assert settings.source.endswith("default.yaml")
        assert len(settings.checksum) == 64

    def test_default_policy_matches_kernel_defaults(self):
        assert build_policy(get_active_config()) == LedgerPolicy()

    def test_trace_is_logged(self, captured_logs):
        settings = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert traces[-1]["checksum"] == settings.checksum
        assert traces[-1]["config_source"] == settings.source
        assert traces[-1]["balance_tolerance"] == "0.01"


class TestCustomConfig:

    def test_overrides(self, write_config):
        path = write_config(
            {
                "balance_tolerance": 0.005,
                "reversal_status": "Draft",
                "code_prefix": " ADJ ",
                "edit_history_capacity": 10,
                "database": {"url": "postgresql://ledger@localhost/ledger", "pool_size": 5},
            }
        )

        settings = get_active_config(path)

        assert settings.balance_tolerance == Decimal("0.005")
        assert settings.reversal_status == "draft"
        assert settings.code_prefix == "ADJ"
        assert settings.edit_history_capacity == 10
        assert settings.min_lines == 2
        assert settings.database.pool_size == 5
        assert settings.database.max_overflow == 10

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        settings = get_active_config(path)

        assert build_policy(settings) == LedgerPolicy()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)


class TestValidation:

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"tolerance": "0.01"}, "Unknown ledger setting"),
            ({"database": {"host": "db"}}, "Unknown database"),
            ({"balance_tolerance": "0"}, "positive"),
            ({"balance_tolerance": "-0.01"}, "positive"),
            ({"balance_tolerance": "abc"}, "number"),
            ({"balance_tolerance": True}, "number"),
            ({"min_lines": 0}, "positive integer"),
            ({"min_lines": 1}, "min_lines must be at least 2"),
            ({"edit_history_capacity": True}, "positive integer"),
            ({"code_width": "3"}, "positive integer"),
            ({"reversal_status": "reversed"}, "reversal_status"),
            ({"code_prefix": "  "}, "code_prefix"),
            ({"reject_future_transaction_dates": "yes"}, "true or false"),
            ({"database": {"url": ""}}, "database.url"),
            ({"database": {"max_overflow": -1}}, "max_overflow"),
            ({"database": "sqlite://"}, "mapping"),
        ],
    )
    def test_invalid_documents(self, data, message):
        with pytest.raises(ValueError, match=message):
            parse_settings(data)


class TestChecksum:

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_content_changes_checksum(self):
        assert parse_settings({"code_prefix": "JV"}).checksum != parse_settings(
            {"code_prefix": "GL"}
        ).checksum


class TestBridges:

    def test_draft_reversal_status(self):
        policy = build_policy(parse_settings({"reversal_status": "draft"}))

        assert policy.reversal_status == EntryStatus.DRAFT

    def test_engine_kwargs(self):
        settings = parse_settings({"database": {"url": "sqlite:///ledger.db", "echo": True}})

        assert build_engine_kwargs(settings) == {
            "database_url": "sqlite:///ledger.db",
            "echo": True,
            "pool_size": 20,
            "max_overflow": 10,
        }

"""Tests for configuration management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from lotwise.config import Config
from lotwise.core.engine import CostBasisEngine
from lotwise.core.exceptions import ConfigurationError
from lotwise.core.lots.models import CostBasisMethod
from lotwise.core.sources import InMemoryAssetRegistry


class TestConfigDefaults:
    """Tests for default configuration values."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = Config()

        assert cfg.db_path == Path("./data/lotwise.db")
        assert cfg.default_cost_basis_method == "FIFO"
        assert cfg.risk_free_rate == 0.02
        assert cfg.periods_per_year == 252
        assert cfg.default_benchmark == "SPY"
        assert cfg.log_level == "WARNING"

    def test_defaults_validate(self):
        with patch.dict(os.environ, {}, clear=True):
            Config().validate()


class TestConfigFromEnv:
    """Tests for configuration from environment variables."""

    def test_custom_values(self):
        env = {
            "LOTWISE_DB_PATH": "/custom/ledger.db",
            "LOTWISE_DEFAULT_METHOD": "lifo",
            "LOTWISE_RISK_FREE_RATE": "0.045",
            "LOTWISE_PERIODS_PER_YEAR": "52",
            "LOTWISE_BENCHMARK": "QQQ",
            "LOTWISE_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = Config()

        assert cfg.db_path == Path("/custom/ledger.db")
        assert cfg.default_cost_basis_method == "LIFO"
        assert cfg.risk_free_rate == 0.045
        assert cfg.periods_per_year == 52
        assert cfg.default_benchmark == "QQQ"
        assert cfg.log_level == "DEBUG"

    def test_string_path_is_converted(self):
        cfg = Config(db_path="relative/ledger.db")
        assert cfg.db_path == Path("relative/ledger.db")


class TestConfigValidation:

    def test_unknown_method(self):
        with patch.dict(os.environ, {"LOTWISE_DEFAULT_METHOD": "HIFO"}, clear=True):
            cfg = Config()
        with pytest.raises(ConfigurationError, match="LOTWISE_DEFAULT_METHOD"):
            cfg.validate()

    def test_non_numeric_risk_free_rate(self):
        with patch.dict(os.environ, {"LOTWISE_RISK_FREE_RATE": "two percent"}, clear=True):
            cfg = Config()
        with pytest.raises(ConfigurationError, match="LOTWISE_RISK_FREE_RATE"):
            cfg.validate()

    def test_non_positive_periods(self):
        cfg = Config(periods_per_year=0)
        with pytest.raises(ConfigurationError, match="LOTWISE_PERIODS_PER_YEAR"):
            cfg.validate()

    def test_ensure_directories(self, tmp_path):
        cfg = Config(db_path=tmp_path / "nested" / "ledger.db")
        cfg.ensure_directories()
        assert (tmp_path / "nested").is_dir()


class TestEngineFromConfig:

    def test_settings_are_passed_explicitly(self):
        cfg = Config(default_cost_basis_method="LIFO", risk_free_rate=0.03, periods_per_year=12)

        engine = CostBasisEngine.from_config(cfg, InMemoryAssetRegistry())

        assert engine.default_method is CostBasisMethod.LIFO
        assert engine.analyzer.risk_free_rate == 0.03
        assert engine.analyzer.periods_per_year == 12
        assert engine.default_benchmark == "SPY"

    def test_invalid_config_is_rejected(self):
        cfg = Config(default_cost_basis_method="AVERAGE")
        with pytest.raises(ConfigurationError):
            CostBasisEngine.from_config(cfg, InMemoryAssetRegistry())

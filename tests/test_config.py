'''
Tests for the configuration layer.
'''

import json

import pytest

from lrpc.core.config import (
    ConfigManager, default_n_cores, get_config, reset_config, set_config
)
from lrpc.core.exceptions import ConfigurationError


@pytest.fixture
def isolated_manager(tmp_path, monkeypatch):
    """Factory for managers reading from a temporary configuration directory."""
    monkeypatch.setenv("LRPC_CONFIG_DIR", str(tmp_path))

    def _make() -> ConfigManager:
        manager = ConfigManager()
        manager.initialize()
        return manager

    return _make


class TestGlobalConfig:
    """Tests for the module-level accessors."""

    def test_defaults(self):
        assert get_config("estimation", "n_folds") == 1
        assert get_config("estimation", "path_length") == 10
        assert get_config("estimation", "symmetric") == "min"
        assert get_config("numerical", "lp_method") == "highs"
        assert get_config("numerical", "degenerate_loss") == 1e12

    def test_unknown_option_returns_default(self):
        assert get_config("estimation", "missing", 42) == 42

    def test_set_and_reset(self):
        set_config("estimation", "path_length", 25)
        assert get_config("estimation", "path_length") == 25
        reset_config("estimation", "path_length")
        assert get_config("estimation", "path_length") == 10

    def test_string_values_are_coerced(self):
        set_config("estimation", "adaptive", "yes")
        set_config("estimation", "n_folds", "4")
        assert get_config("estimation", "adaptive") is True
        assert get_config("estimation", "n_folds") == 4

    def test_invalid_choice(self):
        with pytest.raises(ConfigurationError):
            set_config("estimation", "symmetric", "median")

    def test_non_positive_value(self):
        with pytest.raises(ConfigurationError):
            set_config("estimation", "n_folds", 0)

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError):
            set_config("estimation", "bandwidth", 3)

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError):
            set_config("solver", "method", "highs")

    def test_default_n_cores(self):
        assert 1 <= default_n_cores() <= 3
        set_config("performance", "n_cores", 5)
        assert default_n_cores() == 5


class TestConfigManager:
    """Tests for file and environment layers."""

    def test_environment_override(self, isolated_manager, monkeypatch):
        monkeypatch.setenv("LRPC_ESTIMATION_PATH_LENGTH", "20")
        monkeypatch.setenv("LRPC_PERFORMANCE_EXECUTOR", "thread")
        manager = isolated_manager()
        assert manager.get("estimation", "path_length") == 20
        assert manager.get("performance", "executor") == "thread"

    def test_invalid_environment_value_ignored(self, isolated_manager, monkeypatch):
        monkeypatch.setenv("LRPC_ESTIMATION_SYMMETRIC", "median")
        assert isolated_manager().get("estimation", "symmetric") == "min"

    def test_save_and_reload(self, isolated_manager, tmp_path):
        manager = isolated_manager()
        manager.set("estimation", "n_folds", 3)
        manager.save_user_config()

        saved = json.loads((tmp_path / "lrpc_config.json").read_text())
        assert saved["estimation"]["n_folds"] == 3
        assert isolated_manager().get("estimation", "n_folds") == 3

    def test_malformed_file_ignored(self, isolated_manager, tmp_path):
        (tmp_path / "lrpc_config.json").write_text("{not json")
        assert isolated_manager().get("estimation", "n_folds") == 1

    def test_modified_options(self, isolated_manager):
        manager = isolated_manager()
        manager.set("numerical", "repair_max_iter", 50)
        assert manager.get_modified_options() == ["numerical.repair_max_iter"]
        manager.reset()
        assert manager.get_modified_options() == []
        assert manager.get("numerical", "repair_max_iter") == 1000

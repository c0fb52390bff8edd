"""Tests for kernel configuration loading."""

import logging
from decimal import Decimal

import pytest
import yaml

from inventory_kernel.config import (
    DEFAULT_DATABASE_URL,
    ENV_DATABASE_URL,
    ENV_ECHO_SQL,
    ENV_LOG_LEVEL,
    KernelConfig,
    apply_env_overrides,
    config_from_mapping,
    load_config,
)
from inventory_kernel.exceptions import ConfigurationError


class TestDefaults:

    def test_defaults(self):
        config = load_config(environ={})

        assert config.database_url == DEFAULT_DATABASE_URL
        assert config.echo_sql is False
        assert config.log_level_number == logging.INFO
        assert config.price_scale == 2
        assert config.vat_percentage(0) == Decimal("0")
        assert config.vat_percentage(1) == Decimal("12")
        assert config.vat_percentage(2) == Decimal("21")

    def test_unknown_vat_code(self):
        with pytest.raises(ConfigurationError) as exc_info:
            KernelConfig().vat_percentage(3)

        assert exc_info.value.setting == "vat_rates"


class TestYamlFile:

    def test_load_file(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text(
            "database_url: sqlite:///shop.db\n"
            "echo_sql: yes\n"
            "log_level: debug\n"
            "price_scale: 3\n"
            "vat_rates:\n"
            "  0: 0\n"
            "  1: 10\n"
            "  2: '20.5'\n"
        )

        config = load_config(path, environ={})

        assert config.database_url == "sqlite:///shop.db"
        assert config.echo_sql is True
        assert config.log_level == "DEBUG"
        assert config.price_scale == 3
        assert config.vat_percentage(2) == Decimal("20.5")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path, environ={}) == KernelConfig()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("database_url: sqlite://\ncolour: blue\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path, environ={})

        assert "colour" in exc_info.value.reason

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(path, environ={})

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("database_url: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_config(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", environ={})


class TestValidation:

    @pytest.mark.parametrize(
        "data",
        [
            {"log_level": "chatty"},
            {"price_scale": -1},
            {"price_scale": "two"},
            {"echo_sql": "maybe"},
            {"vat_rates": {1: "-5"}},
            {"vat_rates": {"x": 5}},
            {"vat_rates": [1, 2]},
            {"database_url": ""},
        ],
    )
    def test_rejected(self, data):
        with pytest.raises(ConfigurationError):
            config_from_mapping(data)


class TestEnvironmentOverrides:

    def test_env_wins_over_file(self, tmp_path):
        path = tmp_path / "inventory.yaml"
        path.write_text("database_url: sqlite:///file.db\nlog_level: INFO\n")

        config = load_config(
            path,
            environ={
                ENV_DATABASE_URL: "sqlite:///env.db",
                ENV_LOG_LEVEL: "warning",
                ENV_ECHO_SQL: "1",
            },
        )

        assert config.database_url == "sqlite:///env.db"
        assert config.log_level == "WARNING"
        assert config.echo_sql is True

    def test_no_overrides_returns_same_object(self):
        config = KernelConfig()

        assert apply_env_overrides(config, {}) is config

    def test_bad_env_value(self):
        with pytest.raises(ConfigurationError):
            apply_env_overrides(KernelConfig(), {ENV_LOG_LEVEL: "loud"})

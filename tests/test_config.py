"""
Unit tests for config.py
"""

import os
import tempfile
from unittest import mock

import pytest
import yaml

from mysql_dump_adapter.config import ConfigLoader
from mysql_dump_adapter.exceptions import DomainError


class TestConfigLoader:
    """Tests for ConfigLoader class."""

    @pytest.fixture
    def sample_config(self):
        """Sample configuration dictionary."""
        return {
            "adapter": {
                "strategy": "tab",
                "connection": "primary",
                "output_dir": "./dumps"
            },
            "connections": {
                "primary": {
                    "host": "localhost",
                    "port": 3306,
                    "user": "root",
                    "password": "secret"
                },
                "replica": {
                    "host": "192.168.1.100",
                    "port": 3307,
                    "user": "admin",
                    "password": "admin_pass"
                }
            },
            "logging": {
                "level": "INFO",
                "file": "./dumps/adapter.log"
            }
        }

    @pytest.fixture
    def config_file(self, sample_config):
        """Create a temporary config file."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.yaml', delete=False
        ) as f:
            yaml.dump(sample_config, f)
            f.flush()
            yield f.name
        os.unlink(f.name)

    def test_load_config(self, config_file):
        """Test loading a valid config file."""
        loader = ConfigLoader(config_file)
        assert loader.config is not None

    def test_file_not_found(self):
        """Test that FileNotFoundError is raised for missing file."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader("/nonexistent/path/config.yaml")

    def test_get_connections(self, config_file):
        """Test getting all named connections."""
        loader = ConfigLoader(config_file)
        assert sorted(loader.get_connections()) == ["primary", "replica"]

    def test_get_connection(self, config_file):
        """Test getting a specific connection."""
        loader = ConfigLoader(config_file)
        connection = loader.get_connection("replica")
        assert connection["host"] == "192.168.1.100"
        assert connection["port"] == 3307
        assert connection["user"] == "admin"

    def test_get_connection_not_found(self, config_file):
        """Test getting a non-existent connection raises DomainError."""
        loader = ConfigLoader(config_file)
        with pytest.raises(DomainError) as exc_info:
            loader.get_connection("nonexistent")
        assert 'Connection "nonexistent" not provided' in str(exc_info.value)

    def test_get_adapter_settings(self, config_file):
        """Test adapter settings override the defaults."""
        loader = ConfigLoader(config_file)
        settings = loader.get_adapter_settings()
        assert settings == {"strategy": "tab", "connection": "primary", "output_dir": "./dumps"}

    def test_get_logging_settings(self, config_file):
        """Test getting logging settings."""
        loader = ConfigLoader(config_file)
        logging = loader.get_logging_settings()
        assert logging["level"] == "INFO"
        assert logging["file"] == "./dumps/adapter.log"

    def test_logging_settings_are_a_copy(self, config_file):
        """Changing returned logging settings does not change the loaded config."""
        loader = ConfigLoader(config_file)
        loader.get_logging_settings()["level"] = "DEBUG"
        assert loader.get_logging_settings()["level"] == "INFO"

    def test_empty_sections(self):
        """Test handling of missing config sections."""
        config = {"connections": {"default": {"user": "u", "password": "p"}}}
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.yaml', delete=False
        ) as f:
            yaml.dump(config, f)
            f.flush()
            loader = ConfigLoader(f.name)
        os.unlink(f.name)

        assert loader.get_adapter_settings() == ConfigLoader.DEFAULT_ADAPTER_SETTINGS
        assert loader.get_logging_settings() == {}

    def test_empty_file(self, tmp_path):
        """An empty file loads as an empty configuration."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        loader = ConfigLoader(str(path))
        assert loader.get_connections() == {}

    def test_non_mapping_rejected(self, tmp_path):
        """A YAML document that is not a mapping is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(DomainError):
            ConfigLoader(str(path))


class TestEnvironmentVariables:
    """Tests for environment variable resolution."""

    @pytest.fixture
    def env_config(self):
        """Configuration with environment variables."""
        return {
            "connections": {
                "default": {
                    "host": "${DB_HOST}",
                    "port": 3306,
                    "user": "${DB_USER}",
                    "password": "${DB_PASSWORD}"
                }
            },
            "adapter": {
                "output_dir": "${OUTPUT_DIR}/dumps"
            }
        }

    @pytest.fixture
    def env_config_file(self, env_config):
        """Create a temporary config file with env vars."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.yaml', delete=False
        ) as f:
            yaml.dump(env_config, f)
            f.flush()
            yield f.name
        os.unlink(f.name)

    def test_resolve_env_vars(self, env_config_file):
        """Test environment variables are resolved."""
        with mock.patch.dict(os.environ, {
            "DB_HOST": "db.example.com",
            "DB_USER": "myuser",
            "DB_PASSWORD": "mypassword",
            "OUTPUT_DIR": "/var/backups"
        }):
            loader = ConfigLoader(env_config_file)
            connection = loader.get_connection("default")
            assert connection["host"] == "db.example.com"
            assert connection["user"] == "myuser"
            assert connection["password"] == "mypassword"
            assert loader.get_adapter_settings()["output_dir"] == "/var/backups/dumps"

    def test_missing_env_var_becomes_empty(self, env_config_file):
        """Test missing environment variables become empty strings."""
        with mock.patch.dict(os.environ, {}, clear=True):
            loader = ConfigLoader(env_config_file)
            connection = loader.get_connection("default")
            assert connection["host"] == ""
            assert connection["password"] == ""

    def test_non_string_values_untouched(self, env_config_file):
        """Test non-string values pass through unchanged."""
        with mock.patch.dict(os.environ, {}, clear=True):
            loader = ConfigLoader(env_config_file)
            assert loader.get_connection("default")["port"] == 3306

"""
Connectivity Config Tests

Tests for the YAML configuration layer (files live in tmp_path).

To run these tests:
    pytest tests/connectivity/test_config.py -v
"""

import logging

import pytest
import yaml

from connectivity.config import ConnectivityConfig
from connectivity.constants import (
    DEFAULT_FRAMEWORK,
    DEFAULT_PROBE_URLS,
    Framework,
    ProbeMethod,
    ReductionPolicy,
)
from connectivity.interfaces.errors import ConfigurationError


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "connectivity.yaml"


def write_config(path, values):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(values))


@pytest.mark.unit
class TestLoading:
    """Test defaults and file overrides"""

    def test_defaults_without_file(self, config_path):
        config = ConnectivityConfig(config_path)

        assert config.probe_urls == list(DEFAULT_PROBE_URLS)
        assert config.framework == DEFAULT_FRAMEWORK
        assert not config_path.exists()

    def test_file_overrides_defaults(self, config_path):
        write_config(
            config_path,
            {
                "probe_urls": ["https://example.com/generate_204"],
                "expected_response": "",
                "validation_mode": "equals",
                "probe_method": "head",
                "reduction_policy": "any",
                "polling_enabled": True,
                "polling_interval": 30,
                "framework": "polling",
            },
        )

        config = ConnectivityConfig(config_path)
        probe = config.build_probe_configuration()
        polling = config.build_polling_configuration()

        assert probe.urls == ("https://example.com/generate_204",)
        assert probe.method == ProbeMethod.HEAD
        assert probe.reduction_policy == ReductionPolicy.ANY
        assert polling.is_polling_enabled
        assert polling.polling_interval == 30.0
        assert config.framework == Framework.POLLING

    def test_unknown_keys_are_dropped(self, config_path, caplog):
        write_config(config_path, {"polling_interval": 15, "colour": "blue"})

        with caplog.at_level(logging.WARNING):
            config = ConnectivityConfig(config_path)

        assert config.polling_interval == 15.0
        assert config.get("colour") is None
        assert "colour" in caplog.text

    @pytest.mark.parametrize("content", ["probe_urls: [unclosed", "- just\n- a list\n"])
    def test_unreadable_file_falls_back_to_defaults(self, config_path, content):
        config_path.parent.mkdir(parents=True)
        config_path.write_text(content)

        config = ConnectivityConfig(config_path)

        assert config.probe_urls == list(DEFAULT_PROBE_URLS)

    def test_single_url_string_loaded_as_list(self, config_path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text("probe_urls: https://example.com/\n")

        config = ConnectivityConfig(config_path)

        assert config.probe_urls == ["https://example.com/"]

    @pytest.mark.parametrize(
        "values",
        [
            {"polling_interval": 0},
            {"request_timeout": -2},
            {"probe_urls": []},
            {"validation_mode": "fuzzy"},
            {"framework": "bluetooth"},
        ],
    )
    def test_invalid_values_raise(self, config_path, values):
        write_config(config_path, values)

        with pytest.raises(ConfigurationError):
            ConnectivityConfig(config_path)


@pytest.mark.unit
class TestUpdating:
    """Test set/save/reload"""

    def test_set_validates_and_keeps_previous_value(self, config_path):
        config = ConnectivityConfig(config_path)
        previous = config.polling_interval

        with pytest.raises(ConfigurationError):
            config.set("polling_interval", -1)

        assert config.polling_interval == previous

    def test_set_unknown_key(self, config_path):
        config = ConnectivityConfig(config_path)

        with pytest.raises(ConfigurationError):
            config.set("colour", "blue")

    def test_set_save_and_reload(self, config_path):
        config = ConnectivityConfig(config_path)
        config.set("polling_interval", 42, save=True)

        assert config_path.exists()
        assert ConnectivityConfig(config_path).polling_interval == 42.0

        write_config(config_path, {"expected_response": "Hello"})
        config.reload()

        assert config.expected_response == "Hello"
        assert config.polling_interval != 42.0

    def test_set_single_url_string_stored_as_list(self, config_path):
        config = ConnectivityConfig(config_path)

        config.set("probe_urls", "https://example.com/", save=True)

        assert config.probe_urls == ["https://example.com/"]
        assert yaml.safe_load(config_path.read_text())["probe_urls"] == ["https://example.com/"]
        assert ConnectivityConfig(config_path).probe_urls == ["https://example.com/"]

    def test_to_dict_is_a_copy(self, config_path):
        config = ConnectivityConfig(config_path)

        values = config.to_dict()
        values["polling_interval"] = 999

        assert config.polling_interval != 999

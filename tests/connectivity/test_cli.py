"""
CLI Tests

Tests for the connectivity-monitor command. Connectivity.from_config is
patched to wire in the mock link source and transport.

To run these tests:
    pytest tests/connectivity/test_cli.py -v
"""

import logging

import pytest
import yaml

from connectivity import cli
from connectivity.controllers.connectivity_controller import Connectivity


@pytest.fixture
def cli_env(monkeypatch, tmp_path, mock_link, mock_transport):
    """
    Run the CLI from an empty directory against the mocks.

    Returns the MockTransport so tests can stub probe hosts.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)

    def from_config(config, link_mode="auto", lifecycle_bus=None):
        return Connectivity(
            probe_config=config.build_probe_configuration(),
            polling_config=config.build_polling_configuration(),
            link_source=mock_link,
            transport=mock_transport,
            lifecycle_bus=lifecycle_bus,
        )

    monkeypatch.setattr(Connectivity, "from_config", staticmethod(from_config))
    return mock_transport


@pytest.mark.unit
class TestCheckCommand:
    """Test `connectivity-monitor check`"""

    def test_connected(self, cli_env, probe_stubs, capsys):
        probe_stubs.all_success()

        exit_code = cli.main(["check"])

        assert exit_code == cli.EXIT_CONNECTED
        assert capsys.readouterr().out.startswith("connected_via_wifi:")

    def test_captive_portal(self, cli_env, probe_stubs, capsys):
        probe_stubs.all_portal()

        exit_code = cli.main(["check"])

        assert exit_code == cli.EXIT_NOT_CONNECTED
        assert capsys.readouterr().out.startswith("connected_via_wifi_without_internet:")

    def test_verbose_lists_probes(self, cli_env, probe_stubs, capsys):
        probe_stubs.all_success()
        cli_env.stub_host(probe_stubs.captive_host, probe_stubs.portal_body)

        cli.main(["check", "--verbose"])

        out = capsys.readouterr().out
        assert f"[ok] {probe_stubs.urls[0]}" in out
        assert f"[FAIL] {probe_stubs.urls[1]}" in out

    def test_url_and_expected_overrides(self, cli_env):
        cli_env.stub_host("example.com", "<h1>Example Domain</h1>")

        exit_code = cli.main(["check", "--url", "https://example.com/", "--expected", "Example Domain"])

        assert exit_code == cli.EXIT_CONNECTED
        assert cli_env.get_request_count() == 1

    def test_config_file(self, cli_env, probe_stubs, tmp_path):
        probe_stubs.all_portal()
        config_file = tmp_path / "monitor.yaml"
        config_file.write_text(yaml.safe_dump({"expected_response": "Welcome"}))

        assert cli.main(["check", "--config", str(config_file)]) == cli.EXIT_CONNECTED

    def test_invalid_option_value(self, cli_env):
        assert cli.main(["check", "--timeout", "-1"]) == cli.EXIT_CONFIG_ERROR

    def test_unknown_command(self, cli_env):
        with pytest.raises(SystemExit):
            cli.main(["monitor"])


@pytest.mark.unit
def test_watch_options_enable_polling(cli_env):
    args = cli.build_parser().parse_args(["watch", "--interval", "5", "--poll-always"])

    config = cli.load_config(args)

    assert config.polling_enabled
    assert config.polling_interval == 5.0
    assert config.get("poll_while_offline_only") is False


@pytest.mark.unit
def test_setup_logging_writes_log_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "monitor.log"

    try:
        cli.setup_logging(verbose=True, log_file=str(log_file))
        logging.getLogger("connectivity.test").debug("probe round finished")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            if handler not in saved_handlers:
                handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)

    assert "probe round finished" in log_file.read_text()

"""Smoke tests for CLI commands.

Tests that CLI commands parse correctly and don't crash. Uses Click's
CliRunner with MIDI and serial access patched out.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from timepod.cli.main import cli
from timepod.devices import SerialPortInfo


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def base_args(tmp_path):
    """Keep config and logs inside the test directory."""
    return ["--config", str(tmp_path / "config.json"), "--log-file", str(tmp_path / "timepod.log")]


@pytest.mark.integration
class TestCLIHelp:
    """Test that all commands have working help text."""

    def test_main_help(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'TP-001' in result.output

    def test_version_flag(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert '0.1.0' in result.output

    @pytest.mark.parametrize("group", ["midi", "serial", "device", "firmware", "config"])
    def test_group_help(self, runner, group):
        result = runner.invoke(cli, [group, '--help'])
        assert result.exit_code == 0

    def test_flash_help(self, runner):
        result = runner.invoke(cli, ['firmware', 'flash', '--help'])
        assert result.exit_code == 0
        assert '--file' in result.output


@pytest.mark.integration
class TestListCommands:
    """Test listing commands with patched backends."""

    @patch("timepod.devices.discovery.mido")
    def test_midi_list_marks_device(self, mock_mido, runner, base_args):
        mock_mido.get_input_names.return_value = ["TP-001 MIDI 1"]
        mock_mido.get_output_names.return_value = ["IAC Bus 1", "TP-001 MIDI 1"]

        result = runner.invoke(cli, base_args + ['midi', 'list'])
        assert result.exit_code == 0
        assert "[0] TP-001 MIDI 1  [TP-001]" in result.output
        assert "[0] IAC Bus 1\n" in result.output

    @patch("timepod.devices.discovery.mido")
    def test_midi_list_backend_error(self, mock_mido, runner, base_args):
        mock_mido.get_input_names.side_effect = RuntimeError("no backend")
        mock_mido.get_output_names.return_value = []

        result = runner.invoke(cli, base_args + ['midi', 'list'])
        assert result.exit_code == 0
        assert "ERROR" in result.output

    @patch("timepod.devices.discovery.DeviceDiscovery.list_serial_ports")
    def test_serial_list(self, mock_list, runner, base_args):
        mock_list.return_value = [
            SerialPortInfo(path="/dev/ttyACM0", description="TP-001", vendor_id=0x04D8, product_id=0xE514),
            SerialPortInfo(path="/dev/ttyS0"),
        ]
        result = runner.invoke(cli, base_args + ['serial', 'list'])
        assert result.exit_code == 0
        assert "/dev/ttyACM0  [Bootloader]" in result.output
        assert "04D8:E514" in result.output


@pytest.mark.integration
class TestConfigCommands:
    """Test config commands against a temporary file."""

    def test_show_defaults(self, runner, base_args):
        result = runner.invoke(cli, base_args + ['config', 'show'])
        assert result.exit_code == 0
        assert json.loads(result.output)["serial"]["baudrate"] == 57600

    def test_path(self, runner, base_args, tmp_path):
        result = runner.invoke(cli, base_args + ['config', 'path'])
        assert result.exit_code == 0
        assert str(tmp_path / "config.json") in result.output

    def test_reset(self, runner, base_args, tmp_path):
        result = runner.invoke(cli, base_args + ['config', 'reset', '--yes'])
        assert result.exit_code == 0
        assert (tmp_path / "config.json").exists()

    def test_invalid_config_reported(self, runner, base_args, tmp_path):
        (tmp_path / "config.json").write_text("{broken")
        result = runner.invoke(cli, base_args + ['config', 'show'])
        assert result.exit_code == 1
        assert "ERROR" in result.output


@pytest.mark.integration
class TestFirmwareCommands:
    def test_flash_rejects_file_and_url(self, runner, base_args, tmp_path):
        image = tmp_path / "fw.bin"
        image.write_bytes(b"\x01")
        result = runner.invoke(
            cli, base_args + ['firmware', 'flash', '--file', str(image), '--url', 'https://example.com']
        )
        assert result.exit_code != 0
        assert "either --file or --url" in result.output

    @patch("timepod.devices.discovery.mido")
    def test_flash_without_device(self, mock_mido, runner, base_args, tmp_path):
        mock_mido.get_output_names.return_value = []
        image = tmp_path / "fw.bin"
        image.write_bytes(b"\x01")

        result = runner.invoke(cli, base_args + ['firmware', 'flash', '--file', str(image), '--yes'])
        assert result.exit_code == 1
        assert "No TP-001 MIDI output found" in result.output

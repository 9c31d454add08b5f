"""Tests for the command-line entry point."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

tk = pytest.importorskip("tkinter")

from gammapplet.__main__ import apply_overrides, build_parser, main, run_applet  # noqa: E402
from gammapplet.relay import GammaRelayError  # noqa: E402
from tests.helpers import FakeRelay, wait_for  # noqa: E402


class TestParser:
    """Tests for argument parsing and overrides."""

    def test_no_flags_keep_config(self, mock_config):
        args = build_parser().parse_args([])

        assert apply_overrides(mock_config, args) == mock_config

    def test_visibility_flags(self, mock_config):
        args = build_parser().parse_args(["-i", "-g", "-l", "-f"])

        window = apply_overrides(mock_config, args)["window"]

        assert window["show_invert"] is False
        assert window["show_gamma"] is False
        assert window["show_labels"] is False
        assert window["never_fade"] is True
        assert window["show_temperature"] is True

    def test_hide_caret(self, mock_config):
        """Test that -c, used by existing bar launch commands, is accepted."""
        args = build_parser().parse_args(["-c"])

        window = apply_overrides(mock_config, args)["window"]

        assert window["show_caret"] is False
        assert mock_config["window"]["show_caret"] is True

    def test_hide_caret_long_form(self, mock_config):
        args = build_parser().parse_args(["--hide-caret", "-i"])

        window = apply_overrides(mock_config, args)["window"]

        assert window["show_caret"] is False
        assert window["show_invert"] is False

    def test_geometry_and_defaults(self, mock_config):
        args = build_parser().parse_args(["-p", "4", "-x", "120", "-y", "300", "-T", "4500", "-B", "0.7", "-G", "1.1"])

        config = apply_overrides(mock_config, args)

        assert config["window"]["outer_padding"] == 4
        assert config["window"]["width"] == 120
        assert config["window"]["height"] == 300
        assert config["defaults"] == {"temperature": 4500, "brightness": 0.7, "gamma": 1.1}

    def test_sync_flags(self, mock_config):
        args = build_parser().parse_args(["--tick-ms", "0", "--no-cross-invalidation"])

        sync = apply_overrides(mock_config, args)["sync"]

        assert sync["tick_ms"] == 1
        assert sync["cross_invalidation"] is False

    def test_overrides_do_not_modify_input(self, mock_config):
        args = build_parser().parse_args(["-T", "3000"])

        apply_overrides(mock_config, args)

        assert mock_config["defaults"]["temperature"] == 6500

    @pytest.mark.parametrize("argv", [["-T", "500"], ["-B", "1.5"], ["-G", "0.2"], ["-T", "warm"]])
    def test_invalid_defaults_rejected(self, argv):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(argv)

        assert exc_info.value.code == 2


class TestRunApplet:
    """Tests for run_applet wiring and exit codes."""

    def test_relay_unreachable(self, mock_config, mocker, capsys):
        mocker.patch(
            "gammapplet.__main__.GammaRelayClient.open",
            side_effect=GammaRelayError("connect to session bus", "no address"),
        )

        assert run_applet(mock_config) == 1
        assert "no address" in capsys.readouterr().err

    def test_startup_read_fails(self, mock_config, mocker, capsys):
        """Test that a missing relay service closes the connection and exits 1."""
        relay = MagicMock()
        relay.snapshot.side_effect = GammaRelayError("get Inverted", "ServiceUnknown")
        mocker.patch("gammapplet.__main__.GammaRelayClient.open", return_value=relay)

        assert run_applet(mock_config) == 1
        relay.close.assert_called_once()
        assert "wl-gammarelay-rs" in capsys.readouterr().err

    def test_normal_close(self, mock_config, mocker):
        """Test the full wiring when the window closes on its own."""
        relay = FakeRelay(temperature=4000)
        mocker.patch("gammapplet.__main__.GammaRelayClient.open", return_value=relay)
        window_cls = mocker.patch("gammapplet.__main__.AppletWindow")

        assert run_applet(mock_config) == 0

        config_arg, _adapter, snapshot = window_cls.call_args[0]
        assert config_arg == mock_config["window"]
        assert snapshot.temperature == 4000
        window_cls.return_value.run.assert_called_once()
        assert relay.closed

    def test_display_error(self, mock_config, mocker):
        relay = FakeRelay()
        mocker.patch("gammapplet.__main__.GammaRelayClient.open", return_value=relay)
        window_cls = mocker.patch("gammapplet.__main__.AppletWindow")
        window_cls.return_value.run.side_effect = tk.TclError("no display name")

        assert run_applet(mock_config) == 1
        assert relay.closed

    def test_worker_failure_exit_code(self, mock_config, mocker):
        """Test that a relay failure during the session exits 1."""
        relay = FakeRelay()
        relay.fail_on.add("toggle_inverted")
        mocker.patch("gammapplet.__main__.GammaRelayClient.open", return_value=relay)
        window_cls = mocker.patch("gammapplet.__main__.AppletWindow")

        def run():
            adapter = window_cls.call_args[0][1]
            adapter.on_invert_changed(True)
            wait_for(lambda: window_cls.return_value.fail.called)

        window_cls.return_value.run.side_effect = run

        assert run_applet(mock_config) == 1
        window_cls.return_value.fail.assert_called_once()


class TestMain:
    """Tests for main()."""

    def test_bad_config_exits_2(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[[[")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_file)])

        assert exc_info.value.code == 2

    def test_runs_with_loaded_config(self, isolated_xdg, mocker):
        setup = mocker.patch("gammapplet.__main__.setup_logger")
        run = mocker.patch("gammapplet.__main__.run_applet", return_value=0)

        with pytest.raises(SystemExit) as exc_info:
            main(["-T", "4000"])

        assert exc_info.value.code == 0
        assert run.call_args[0][0]["defaults"]["temperature"] == 4000
        log_file = setup.call_args[0][1]
        assert log_file == isolated_xdg.parent / "xdg-state" / "gammapplet" / "gammapplet.log"

"""
Tests for the httpstat command line.
"""

import platform
from unittest.mock import AsyncMock, patch

import pytest
import typer
from typer.testing import CliRunner

from httpstat.cli import app, parse_duration
from httpstat.constants import VERSION
from httpstat.exceptions import DNSResolutionError
from httpstat.models import AddressFamily

runner = CliRunner()


class TestParseDuration:
    """Test Go-style duration parsing."""

    @pytest.mark.parametrize(
        "value, seconds",
        [
            ("500ms", 0.5),
            ("3s", 3.0),
            ("1m30s", 90.0),
            ("1h", 3600.0),
            ("1.5s", 1.5),
            ("250us", 0.00025),
            ("2", 2.0),
            ("0.25", 0.25),
        ],
    )
    def test_valid(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["", "abc", "5x", "3s5", "-1s", "s"])
    def test_invalid(self, value):
        with pytest.raises(typer.BadParameter):
            parse_duration(value, "-w")


class TestCommandLine:
    """Test option handling and exit codes."""

    def test_version(self):
        result = runner.invoke(app, ["-v"])

        assert result.exit_code == 0
        assert result.output.strip() == (
            f"httpstat {VERSION} (runtime: Python {platform.python_version()})"
        )

    def test_help_lists_environment(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for name in ("HTTP_PROXY", "HTTPS_PROXY", "NO_PROXY"):
            assert name in result.output

    def test_missing_url(self):
        assert runner.invoke(app, []).exit_code == 2

    def test_extra_argument(self):
        assert runner.invoke(app, ["example.com", "example.org"]).exit_code == 2

    def test_conflicting_families(self):
        result = runner.invoke(app, ["-4", "-6", "example.com"])

        assert result.exit_code in (-1, 255)
        assert "Only one of -4 and -6 may be specified" in result.output

    def test_bad_duration(self):
        assert runner.invoke(app, ["-w", "soon", "example.com"]).exit_code == 2

    def test_post_without_body(self):
        """Test the body check fails before any connection is made."""
        with patch("httpstat.tracing.backend.resolve_host", new=AsyncMock()) as resolve:
            result = runner.invoke(app, ["-X", "POST", "http://example.com/"])

        assert result.exit_code == 1
        assert "httpstat: must supply post body using -d when POST or PUT is used" in result.output
        resolve.assert_not_called()

    def test_settings_from_flags(self):
        """Test every flag lands in StatSettings."""
        with patch("httpstat.cli.StatClient") as client_cls:
            client = client_cls.return_value
            client.__aenter__ = AsyncMock(return_value=client)
            client.__aexit__ = AsyncMock(return_value=None)
            client.run = AsyncMock(return_value=[])

            result = runner.invoke(
                app,
                [
                    "-X", "put",
                    "-d", "@body.json",
                    "-L", "-k", "-J", "-6",
                    "-H", "Accept: */*",
                    "-H", "X-Trace: 1",
                    "-o", "out.bin",
                    "-m", "10s",
                    "-n", "2",
                    "-w", "500ms",
                    "-cacert", "ca.pem",
                    "-E", "client.pem",
                    "example.com",
                ],
            )

        assert result.exit_code == 0, result.output
        settings = client_cls.call_args.args[0]
        assert settings.method == "PUT"
        assert settings.body == "@body.json"
        assert settings.follow_redirects
        assert settings.insecure
        assert settings.json_output
        assert settings.address_family is AddressFamily.IPV6
        assert settings.headers == ["Accept: */*", "X-Trace: 1"]
        assert settings.output_file == "out.bin"
        assert settings.max_time == 10.0
        assert settings.num_requests == 2
        assert settings.request_delay == pytest.approx(0.5)
        assert settings.ca_cert == "ca.pem"
        assert settings.client_cert == "client.pem"
        client.run.assert_awaited_once_with("example.com")

    def test_defaults(self):
        with patch("httpstat.cli.StatClient") as client_cls:
            client = client_cls.return_value
            client.__aenter__ = AsyncMock(return_value=client)
            client.__aexit__ = AsyncMock(return_value=None)
            client.run = AsyncMock(return_value=[])

            result = runner.invoke(app, ["-I", "example.com"])

        assert result.exit_code == 0, result.output
        settings = client_cls.call_args.args[0]
        assert settings.method == "HEAD"
        assert settings.max_time is None
        assert settings.request_delay == 3.0
        assert settings.address_family is AddressFamily.AUTO

    def test_network_error_exit_code(self):
        with patch("httpstat.cli.StatClient") as client_cls:
            client = client_cls.return_value
            client.__aenter__ = AsyncMock(return_value=client)
            client.__aexit__ = AsyncMock(return_value=None)
            client.run = AsyncMock(
                side_effect=DNSResolutionError(
                    message="DNS resolution failed: no such host", hostname="nope.invalid"
                )
            )

            result = runner.invoke(app, ["nope.invalid"])

        assert result.exit_code == 1
        assert "httpstat: DNS resolution failed: no such host" in result.output

    def test_network_error_prints_one_line(self):
        """Test a failed lookup reports only the fatal message, with no traceback."""
        failing = AsyncMock(side_effect=OSError(-2, "Name or service not known"))
        with patch("httpstat.tracing.backend.resolve_host", new=failing):
            result = runner.invoke(app, ["http://nope.invalid/"])

        assert result.exit_code == 1
        assert result.output.splitlines() == [
            "httpstat: DNS resolution failed: "
            "lookup nope.invalid: [Errno -2] Name or service not known"
        ]
        failing.assert_awaited_once()

    def test_network_error_logged_with_debug(self):
        failing = AsyncMock(side_effect=OSError(-2, "Name or service not known"))
        with patch("httpstat.tracing.backend.resolve_host", new=failing):
            result = runner.invoke(app, ["--debug", "http://nope.invalid/"])

        assert result.exit_code == 1
        assert "request.failed" in result.output
        assert result.output.splitlines()[-1].startswith("httpstat: DNS resolution failed")

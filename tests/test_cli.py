"""
Tests for the command-line front end.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from radar_ip import cli
from radar_ip.exceptions import AuthFailed, ScanTimeout
from radar_ip.models import PrivateKeyFile, ScanResult

TARGET = "aa:bb:cc:dd:ee:ff"


@pytest.fixture(autouse=True)
def clean_environment(tmp_path, monkeypatch):
    """Run every CLI test away from real .env files and secrets."""
    monkeypatch.chdir(tmp_path)
    for name in ("SSH_PASSWORD", "HC_PRIVATE_KEY", "AI3_PRIVATE_KEY", "RADAR_LOG_LEVEL",
                 "RADAR_MAX_CONCURRENT", "RADAR_SCAN_DEADLINE"):
        monkeypatch.delenv(name, raising=False)


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args(["-m", TARGET, "-r", "10.0.0.0/24", "-p", "pw"])
        assert args.user is None
        assert args.port == 22
        assert args.timeout_sec == 5
        assert args.profile is None
        assert args.deadline is None

    def test_profile_case_insensitive(self):
        args = cli.build_parser().parse_args(["-m", TARGET, "--profile", "ai3"])
        assert args.profile == "AI3"

    def test_target_mac_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["-r", "10.0.0.0/24"])


class TestMain:
    @pytest.mark.asyncio
    async def test_found(self, capsys):
        scan = AsyncMock(return_value=ScanResult.found(TARGET, "10.0.0.9", 3))
        with patch("radar_ip.cli.scan_with_deadline", new=scan):
            code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/28", "-p", "pw"])

        assert code == cli.EXIT_FOUND
        assert capsys.readouterr().out.strip() == "10.0.0.9"

        scanner, ip_range, deadline = scan.call_args.args
        assert ip_range == "10.0.0.0/28"
        assert deadline is None
        assert scanner.config.username == "root"
        assert scanner.config.timeout == 5

    @pytest.mark.asyncio
    async def test_key_and_user_passed_through(self, tmp_path):
        scan = AsyncMock(return_value=ScanResult.found(TARGET, "10.0.0.9"))
        with patch("radar_ip.cli.scan_with_deadline", new=scan):
            await cli.main([
                "-m", TARGET, "-r", "10.0.0.0/28",
                "-k", str(tmp_path / "id_ed25519"), "-p", "phrase",
                "-u", "pi", "--port", "2222", "--timeout-sec", "3",
                "--max-concurrent", "10", "--deadline", "20",
            ])

        scanner, _, deadline = scan.call_args.args
        assert deadline == 20
        assert scanner.max_concurrent == 10
        assert scanner.config.username == "pi"
        assert scanner.config.port == 2222
        assert scanner.config.credential == PrivateKeyFile(tmp_path / "id_ed25519", "phrase")

    @pytest.mark.asyncio
    async def test_not_found_json(self, capsys):
        result = ScanResult.not_found(TARGET, AuthFailed("10.0.0.5", "Permission denied"), 14)
        with patch("radar_ip.cli.scan_with_deadline", new=AsyncMock(return_value=result)):
            code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/28", "-p", "s3cr3t-pw", "--json"])

        assert code == cli.EXIT_NOT_FOUND
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "not_found"
        assert payload["error"]["kind"] == "auth_failed"
        assert payload["error"]["address"] == "10.0.0.5"
        assert "s3cr3t-pw" not in json.dumps(payload)

    @pytest.mark.asyncio
    async def test_invalid_range(self, capsys):
        code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/99", "-p", "pw"])
        assert code == cli.EXIT_CONFIG
        assert "Invalid IP range" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_missing_credential(self, capsys):
        code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/24"])
        assert code == cli.EXIT_CONFIG
        assert "credential" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_profile_without_key_env(self, capsys):
        code = await cli.main(["-m", TARGET, "--profile", "HC"])
        assert code == cli.EXIT_CONFIG
        assert "HC_PRIVATE_KEY" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_timeout(self, capsys):
        scan = AsyncMock(side_effect=ScanTimeout(15, "10.0.0.0/24"))
        with patch("radar_ip.cli.scan_with_deadline", new=scan):
            code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/24", "-p", "pw", "--deadline", "15"])

        assert code == cli.EXIT_TIMEOUT
        assert "timed out after 15 seconds" in capsys.readouterr().err

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,value", [
        ("RADAR_MAX_CONCURRENT", "0"),
        ("RADAR_LOG_LEVEL", "LOUD"),
    ])
    async def test_invalid_environment_setting(self, monkeypatch, capsys, name, value):
        monkeypatch.setenv(name, value)
        scan = AsyncMock()
        with patch("radar_ip.cli.scan_with_deadline", new=scan):
            code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/24", "-p", "pw"])

        assert code == cli.EXIT_CONFIG
        assert name.lower() in capsys.readouterr().err
        scan.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_dotenv_setting_json(self, tmp_path, capsys):
        (tmp_path / ".env").write_text("RADAR_MAX_CONCURRENT=-3\n")
        code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/24", "-p", "pw", "--json"])

        assert code == cli.EXIT_CONFIG
        payload = json.loads(capsys.readouterr().out)
        assert payload["kind"] == "config_error"
        assert "radar_max_concurrent" in payload["message"]

    @pytest.mark.asyncio
    async def test_zero_max_concurrent_flag_rejected(self, capsys):
        code = await cli.main(["-m", TARGET, "-r", "10.0.0.0/24", "-p", "pw", "--max-concurrent", "0"])
        assert code == cli.EXIT_CONFIG
        assert "max_concurrent" in capsys.readouterr().err

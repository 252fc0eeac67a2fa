"""命令行测试。"""
import json

from click.testing import CliRunner

from hostmon.cli import cli
from hostmon.core.security import decode_token


def test_token_command():
    result = CliRunner().invoke(cli, ["token", "alice"])
    assert result.exit_code == 0
    assert decode_token(result.output.strip())["sub"] == "alice"


def test_token_refused_without_configured_secret(monkeypatch):
    monkeypatch.setattr("hostmon.core.config.jwt_secret_auto_generated", True)
    result = CliRunner().invoke(cli, ["token", "alice"])
    assert result.exit_code == 1
    assert "JWT_SECRET_KEY" in result.output


def test_seed_rejects_invalid_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"hosts": [{"hostname": "web01"}]}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["seed", str(path)])
    assert result.exit_code != 0


def test_seed_missing_file(tmp_path):
    result = CliRunner().invoke(cli, ["seed", str(tmp_path / "missing.json")])
    assert result.exit_code == 2

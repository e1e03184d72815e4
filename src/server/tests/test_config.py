"""
测试 config.py：config.json 来源、环境变量优先级与 CORS 列表解析。
"""

import json

import pytest

from src.server.config import Config


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOCAL_GATEWAY_PORT", raising=False)
    monkeypatch.delenv("IPFS_API_URL", raising=False)
    return tmp_path


def test_defaults_without_config_file(workdir):
    cfg = Config()
    assert cfg.local_gateway_port == 8080
    assert cfg.local_gateway_path == ""
    assert cfg.ipfs_add_url == "http://127.0.0.1:5001/api/v0/add"


def test_config_json_is_loaded(workdir):
    (workdir / "config.json").write_text(
        json.dumps({"local_gateway_port": 9090, "ipfs_api_url": "http://ipfs:5001/api/v0/"}),
        encoding="utf-8",
    )
    cfg = Config()
    assert cfg.local_gateway_port == 9090
    assert cfg.ipfs_pin_ls_url == "http://ipfs:5001/api/v0/pin/ls"


def test_env_overrides_config_json(workdir, monkeypatch):
    (workdir / "config.json").write_text(json.dumps({"local_gateway_port": 9090}), encoding="utf-8")
    monkeypatch.setenv("LOCAL_GATEWAY_PORT", "7070")
    assert Config().local_gateway_port == 7070


def test_cors_origins_accepts_separated_string():
    assert Config.parse_origins("http://a.test, http://b.test") == ["http://a.test", "http://b.test"]
    assert Config.parse_origins('["http://a.test"]') == ["http://a.test"]
    assert Config.parse_origins("") == []

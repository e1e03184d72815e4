"""
测试 core.py 中的 URL 构造。
"""

from src.server.credential import core
from src.server.credential.schemas import ServerIdentity


def test_public_and_local_urls_embed_same_address():
    identity = ServerIdentity(local_address="10.1.2.3")
    urls = core.build_credential_urls("bafkabc", identity)

    assert urls.public == "https://ipfs.io/ipfs/bafkabc"
    assert urls.local == "http://10.1.2.3:8080/bafkabc"
    assert urls.public.endswith("/bafkabc")
    assert urls.local.endswith("/bafkabc")


def test_build_local_url_with_gateway_path():
    identity = ServerIdentity(local_address="127.0.0.1")
    assert (
        core.build_local_url("Qm1", identity, port=9090, path="/ipfs/")
        == "http://127.0.0.1:9090/ipfs/Qm1"
    )


def test_build_public_url_strips_trailing_slash():
    assert core.build_public_url("Qm1", "https://gw.example/ipfs/") == "https://gw.example/ipfs/Qm1"

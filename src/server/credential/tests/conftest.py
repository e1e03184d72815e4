"""
凭证服务测试的公共夹具：模拟的 IPFS 守护进程、临时 SQLite 存储与固定的网络身份。
"""

import hashlib

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.server.credential.publisher import IpfsPublisher
from src.server.credential.router import register_exception_handlers, router
from src.server.credential.schemas import ServerIdentity
from src.server.credential.store import CredentialStore, create_store_engine

ADD_URL = "http://ipfs.test/api/v0/add"
PIN_LS_URL = "http://ipfs.test/api/v0/pin/ls"


def _extract_upload(request: httpx.Request) -> tuple[str, bytes]:
    """从单文件 multipart 请求体中取出文件名与文件内容。"""
    boundary = request.headers["content-type"].split("boundary=")[1].encode()
    body = request.read()
    part = body.split(b"--" + boundary)[1]
    headers, _, payload = part.partition(b"\r\n\r\n")
    filename = headers.split(b'filename="')[1].split(b'"')[0].decode()
    return filename, payload[:-2]


class FakeIpfs:
    """内容地址为上传字节的 SHA-256，行为与真实内容存储一致：相同字节得到相同地址。"""

    def __init__(self):
        self.pinned: dict[str, bytes] = {}
        self.uploads: list[str] = []

    @staticmethod
    def address_of(data: bytes) -> str:
        return "bafk" + hashlib.sha256(data).hexdigest()

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v0/add":
            filename, data = _extract_upload(request)
            address = self.address_of(data)
            self.pinned[address] = data
            self.uploads.append(filename)
            return httpx.Response(
                200, json={"Name": filename, "Hash": address, "Size": str(len(data))}
            )
        if request.url.path == "/api/v0/pin/ls":
            return httpx.Response(
                200, json={"Keys": {k: {"Type": "recursive"} for k in self.pinned}}
            )
        return httpx.Response(404, text="not found")


@pytest.fixture
def fake_ipfs() -> FakeIpfs:
    return FakeIpfs()


@pytest.fixture
def publisher(fake_ipfs):
    client = httpx.Client(transport=httpx.MockTransport(fake_ipfs.handler))
    p = IpfsPublisher(ADD_URL, PIN_LS_URL, client=client)
    yield p
    client.close()


@pytest.fixture
def store(tmp_path):
    s = CredentialStore(create_store_engine(f"sqlite:///{tmp_path / 'credentials.db'}"))
    s.create_schema()
    yield s
    s.dispose()


@pytest.fixture
def identity() -> ServerIdentity:
    return ServerIdentity(local_address="192.168.1.20")


@pytest.fixture
def client(store, publisher, identity):
    app = FastAPI()
    app.include_router(router)
    register_exception_handlers(app)
    app.state.store = store
    app.state.publisher = publisher
    app.state.identity = identity
    return TestClient(app)

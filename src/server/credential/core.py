"""
凭证访问 URL 的构造逻辑，签发与验证共用。
"""

from __future__ import annotations

from src.server.config import config

from .schemas import CredentialUrls, ServerIdentity


def build_public_url(content_address: str, gateway_base: str | None = None) -> str:
    """
    公共网关 URL：<public-gateway-base>/<contentAddress>
    """
    base = (gateway_base or config.public_gateway_base).rstrip("/")
    return f"{base}/{content_address}"


def build_local_url(
    content_address: str,
    identity: ServerIdentity,
    port: int | None = None,
    path: str | None = None,
) -> str:
    """
    局域网网关 URL：http://<local-address>:<port><path>/<contentAddress>
    """
    port = port if port is not None else config.local_gateway_port
    path = config.local_gateway_path if path is None else path
    path = "/" + path.strip("/") if path.strip("/") else ""
    return f"http://{identity.local_address}:{port}{path}/{content_address}"


def build_credential_urls(content_address: str, identity: ServerIdentity) -> CredentialUrls:
    """根据内容地址构造两种访问 URL，不需要额外查询。"""
    return CredentialUrls(
        public=build_public_url(content_address),
        local=build_local_url(content_address, identity),
    )

"""
文件功能：
    将字节内容发布到内容寻址存储（IPFS 守护进程 HTTP API），返回内容地址。

公开接口：
    - IpfsPublisher(add_url, pin_ls_url, timeout_s, client=None)
      - publish(data, filename) -> str
      - list_pinned() -> set[str]
      - close() -> None

说明：
    不做重试；任何传输错误或非 2xx 响应立即抛出 PublishError，超时抛出 PublishTimeoutError。
"""

from __future__ import annotations

import httpx
from loguru import logger

from .errors import PublishError, PublishTimeoutError

HASH_FIELD = "Hash"


class IpfsPublisher:
    def __init__(
        self,
        add_url: str,
        pin_ls_url: str,
        timeout_s: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.add_url = add_url
        self.pin_ls_url = pin_ls_url
        self._client = client or httpx.Client(timeout=timeout_s)
        self._owns_client = client is None

    def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            resp = self._client.post(url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException as e:
            logger.error(f"内容存储请求超时: {url}: {e}")
            raise PublishTimeoutError(f"内容存储请求超时: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"内容存储返回错误状态 {e.response.status_code}: {e.response.text}")
            raise PublishError(
                f"内容存储返回错误状态 {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"内容存储不可达: {url}: {e}")
            raise PublishError(f"内容存储不可达: {e}") from e

    def publish(self, data: bytes, filename: str) -> str:
        """
        以单文件 multipart 上传内容，返回响应中的 Hash 字段。
        :param data: 待发布的字节内容。
        :param filename: 文件名提示。
        :return: 内容地址。
        :raises PublishError: 不可达、非成功响应或缺少地址字段。
        """
        resp = self._post(
            self.add_url,
            files={"file": (filename, data, "application/pdf")},
        )
        try:
            payload = resp.json()
        except ValueError as e:
            raise PublishError(f"内容存储响应不是合法 JSON: {e}") from e
        content_address = payload.get(HASH_FIELD) if isinstance(payload, dict) else None
        if not content_address:
            raise PublishError(f"内容存储响应缺少 {HASH_FIELD} 字段")
        logger.debug(f"已发布 {filename} ({len(data)} bytes) -> {content_address}")
        return content_address

    def list_pinned(self) -> set[str]:
        """列出内容存储中递归固定（即通过 add 发布）的全部内容地址。"""
        resp = self._post(self.pin_ls_url, params={"type": "recursive"})
        try:
            payload = resp.json()
        except ValueError as e:
            raise PublishError(f"内容存储响应不是合法 JSON: {e}") from e
        keys = payload.get("Keys") if isinstance(payload, dict) else None
        return set(keys or {})

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

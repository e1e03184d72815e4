"""
网络身份解析：确定本机在局域网中可路由的 IPv4 地址，用于构造局域网网关访问 URL。
"""

from __future__ import annotations

import ipaddress
import socket

import psutil
from loguru import logger

from .schemas import ServerIdentity

LOOPBACK_ADDRESS = "127.0.0.1"


def resolve_local_address() -> str:
    """
    遍历网卡，返回第一个非回环的 IPv4 地址；没有合格地址时回退为回环地址。
    不会抛出异常。
    """
    try:
        interfaces = psutil.net_if_addrs()
    except Exception as e:
        logger.warning(f"枚举网卡失败，回退为回环地址: {e}")
        return LOOPBACK_ADDRESS

    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.ip_address(addr.address)
            except ValueError:
                continue
            if ip.is_loopback:
                continue
            logger.debug(f"选定网卡 {name}: {addr.address}")
            return addr.address

    logger.warning("未找到可用的非回环 IPv4 地址，回退为回环地址")
    return LOOPBACK_ADDRESS


def resolve_server_identity() -> ServerIdentity:
    """在进程启动时调用一次。"""
    return ServerIdentity(local_address=resolve_local_address())

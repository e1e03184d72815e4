"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- config: Config 的单例实例
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.parse_origins: 将字符串/JSON 解析为 List[str]
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, List, Tuple

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Config(BaseSettings):
    # 内容寻址存储（IPFS 守护进程 HTTP API）
    ipfs_api_url: str = "http://127.0.0.1:5001/api/v0"
    ipfs_timeout_seconds: float = 30.0

    # 访问网关；局域网 URL 为 http://<本机地址>:<端口><路径>/<内容地址>，路径默认为空
    public_gateway_base: str = "https://ipfs.io/ipfs"
    local_gateway_port: int = 8080
    local_gateway_path: str = ""

    # 关系型存储
    database_url: str = "mysql+pymysql://root:@localhost/credential_db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_seconds: float = 10.0
    db_connect_timeout_seconds: int = 10
    db_auto_create: bool = True

    # HTTP 服务
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        json_file=os.environ.get("CONFIG_FILE", "config.json"),
        json_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: Any) -> List[str]:
        """支持从环境变量以 JSON 或分隔符（逗号/分号/空白）解析 cors_allow_origins。"""
        if value is None or value == "":
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        if isinstance(value, str):
            text = value.strip()
            try:
                loaded = json.loads(text)
                if isinstance(loaded, list):
                    return [str(v) for v in loaded]
            except ValueError:
                pass
            return [p for p in re.split(r"[\s,;]+", text) if p]
        return value

    @property
    def ipfs_add_url(self) -> str:
        return f"{self.ipfs_api_url.rstrip('/')}/add"

    @property
    def ipfs_pin_ls_url(self) -> str:
        return f"{self.ipfs_api_url.rstrip('/')}/pin/ls"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


config = Config()

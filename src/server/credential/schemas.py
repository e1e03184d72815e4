"""
凭证签发与验证服务的数据模型定义。
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class IssueRequest(BaseModel):
    """
    客户端请求签发凭证时的数据模型。
    """
    studentID: str
    studentName: str
    course: str
    date: str


class CredentialUrls(BaseModel):
    """
    同一内容地址的两种访问方式：公共网关与局域网网关。
    """
    public: str
    local: str


class IssueResponse(BaseModel):
    """
    服务端返回签发结果的数据模型。
    """
    status: str = "Success"
    ipfs_hash: str
    urls: CredentialUrls


class VerifyData(BaseModel):
    studentName: str
    course: str
    contentAddress: str


class VerifyResponse(BaseModel):
    """
    服务端返回验证成功结果的数据模型。
    """
    valid: bool = True
    data: VerifyData
    urls: CredentialUrls


class NotFoundResponse(BaseModel):
    valid: bool = False


class ErrorResponse(BaseModel):
    error: str
    stage: str | None = None


class OrphanReport(BaseModel):
    """
    已发布到内容存储、但没有任何存储记录引用的内容地址。
    """
    orphans: list[str] = Field(default_factory=list)
    pinned_count: int
    indexed_count: int


class CredentialRecord(BaseModel):
    """
    关系型存储中的一条凭证记录。
    content_address 必须由恰好提交 raw_bytes 得到。
    """
    model_config = ConfigDict(frozen=True)

    student_id: str
    student_name: str
    course: str
    content_address: str
    raw_bytes: bytes
    issued_date: str | None = None
    id: int | None = None
    created_at: datetime | None = None


class ServerIdentity(BaseModel):
    """
    进程级网络身份：启动时解析一次，之后只读。
    """
    model_config = ConfigDict(frozen=True)

    local_address: str

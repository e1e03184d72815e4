"""
凭证签发与验证流程的异常定义。

公开接口：
    - CredentialError: 所有流程异常的基类
    - RenderError: 文档渲染失败
    - PublishError / PublishTimeoutError: 内容寻址存储发布失败 / 超时
    - StoreError / StoreTimeoutError: 关系型存储读写失败 / 超时
    - IssuanceError: 签发编排层对各阶段异常的统一包装
    - VerificationError: 验证查询失败

说明：
    “未找到记录”不是异常，存储层与验证层以 None 表示。
"""

from __future__ import annotations


class CredentialError(Exception):
    """凭证流程异常基类。"""


class RenderError(CredentialError):
    """证书文档在完成前渲染失败。"""


class PublishError(CredentialError):
    """内容存储不可达、返回非成功响应或缺少地址字段。"""


class PublishTimeoutError(PublishError):
    """内容存储调用超过截止时间。"""


class StoreError(CredentialError):
    """关系型存储连接或写入失败。"""


class StoreTimeoutError(StoreError):
    """从连接池获取连接或执行语句超过截止时间。"""


class IssuanceError(CredentialError):
    """签发流程某一阶段失败。stage 取值：render / publish / store。"""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


class VerificationError(CredentialError):
    """验证时查询存储失败。"""

    stage = "store"

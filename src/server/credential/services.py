"""
凭证签发与验证的业务逻辑层。
此模块按顺序编排渲染、发布、入库，并提供路由层调用的验证、文档获取与孤儿内容对账接口。
"""

from __future__ import annotations

from loguru import logger

from . import core
from .errors import (
    IssuanceError,
    PublishError,
    RenderError,
    StoreError,
    VerificationError,
)
from .publisher import IpfsPublisher
from .renderer import render_certificate
from .schemas import (
    CredentialRecord,
    IssueRequest,
    IssueResponse,
    OrphanReport,
    ServerIdentity,
    VerifyData,
    VerifyResponse,
)
from .store import CredentialStore


def issue_credential_service(
    req: IssueRequest,
    *,
    publisher: IpfsPublisher,
    store: CredentialStore,
    identity: ServerIdentity,
) -> IssueResponse:
    """
    签发凭证：渲染 -> 发布 -> 入库，严格按顺序执行，失败时不做补偿。
    发布成功但入库失败时，已发布内容保留为未被索引的孤儿内容。
    :raises IssuanceError: 任一阶段失败，stage 标明失败阶段。
    """
    logger.info(f"开始签发凭证: studentID={req.studentID}, studentName={req.studentName}")

    try:
        pdf_bytes = render_certificate(req.studentID, req.studentName, req.course, req.date)
    except RenderError as e:
        raise IssuanceError("render", str(e)) from e

    try:
        content_address = publisher.publish(pdf_bytes, f"{req.studentID}.pdf")
    except PublishError as e:
        raise IssuanceError("publish", str(e)) from e

    record = CredentialRecord(
        student_id=req.studentID,
        student_name=req.studentName,
        course=req.course,
        issued_date=req.date,
        content_address=content_address,
        raw_bytes=pdf_bytes,
    )
    try:
        store.insert(record)
    except StoreError as e:
        logger.error(f"凭证已发布但入库失败，产生孤儿内容 {content_address}: {e}")
        raise IssuanceError("store", str(e)) from e

    logger.info(f"凭证签发成功: studentID={req.studentID}, ipfs_hash={content_address}")
    return IssueResponse(
        ipfs_hash=content_address,
        urls=core.build_credential_urls(content_address, identity),
    )


def verify_credential_service(
    student_id: str,
    *,
    store: CredentialStore,
    identity: ServerIdentity,
) -> VerifyResponse | None:
    """
    按 studentID 验证凭证。只查询一次存储，不回访内容存储确认可用性。
    :return: 验证结果；不存在时返回 None。
    :raises VerificationError: 查询存储失败。
    """
    try:
        record = store.find_by_student_id(student_id)
    except StoreError as e:
        raise VerificationError(str(e)) from e

    if record is None:
        logger.warning(f"未找到凭证: studentID={student_id}")
        return None

    return VerifyResponse(
        data=VerifyData(
            studentName=record.student_name,
            course=record.course,
            contentAddress=record.content_address,
        ),
        urls=core.build_credential_urls(record.content_address, identity),
    )


def get_credential_document_service(student_id: str, *, store: CredentialStore) -> bytes | None:
    """
    返回本地存档的证书原始字节（与验证选中的同一条记录）；不存在时返回 None。
    """
    try:
        record = store.find_by_student_id(student_id)
    except StoreError as e:
        raise VerificationError(str(e)) from e
    return record.raw_bytes if record is not None else None


def find_orphans_service(*, publisher: IpfsPublisher, store: CredentialStore) -> OrphanReport:
    """
    对账：列出内容存储中已固定、但没有任何存储记录引用的内容地址。只读，不做删除。
    """
    pinned = publisher.list_pinned()
    indexed = store.list_content_addresses()
    orphans = sorted(pinned - indexed)
    if orphans:
        logger.warning(f"发现 {len(orphans)} 个孤儿内容")
    return OrphanReport(orphans=orphans, pinned_count=len(pinned), indexed_count=len(indexed))

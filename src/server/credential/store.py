"""
文件功能：
    凭证记录的关系型存储（SQLAlchemy Core + 连接池）。

公开接口：
    - credentials_table: 凭证表定义
    - create_store_engine(url, pool_size, pool_timeout_s, connect_timeout_s, max_overflow) -> Engine
    - CredentialStore(engine)
      - insert(record) -> None
      - find_by_student_id(student_id) -> CredentialRecord | None
      - list_content_addresses() -> set[str]
      - create_schema() -> None

说明：
    student_id 不做唯一约束，重复签发产生多行；查询时按自增 id 倒序取最新一行。
"""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import (
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    select,
)
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import make_url
from sqlalchemy.pool import QueuePool, StaticPool

from .errors import StoreError, StoreTimeoutError
from .schemas import CredentialRecord

metadata = MetaData()

credentials_table = Table(
    "credentials",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", String(128), nullable=False),
    Column("student_name", String(255), nullable=False),
    Column("course", String(255), nullable=False),
    Column("issued_date", String(64), nullable=True),
    Column("ipfs_hash", String(128), nullable=False),
    Column("pdf_file", LargeBinary(length=16 * 1024 * 1024), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Index("idx_credentials_student_id", credentials_table.c.student_id)
Index("idx_credentials_ipfs_hash", credentials_table.c.ipfs_hash)


def create_store_engine(
    url: str,
    pool_size: int = 5,
    pool_timeout_s: float = 10.0,
    connect_timeout_s: int = 10,
    max_overflow: int = 10,
) -> Engine:
    """
    根据连接串创建带连接池的 Engine，并为支持的驱动设置连接/读写超时。
    连接池耗尽且超过 pool_timeout_s 仍未取得连接时，存储操作抛出 StoreTimeoutError。
    """
    sa_url = make_url(url)
    if sa_url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": connect_timeout_s}
        if sa_url.database in (None, "", ":memory:"):
            # 内存库只能共享同一个连接
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout_s,
            connect_args=connect_args,
        )

    connect_args = {}
    if sa_url.get_backend_name() == "mysql":
        connect_args = {
            "connect_timeout": connect_timeout_s,
            "read_timeout": connect_timeout_s,
            "write_timeout": connect_timeout_s,
        }
    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout_s,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


class CredentialStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def create_schema(self) -> None:
        """创建凭证表（已存在时跳过）。"""
        try:
            metadata.create_all(self.engine)
        except sa_exc.SQLAlchemyError as e:
            raise StoreError(f"创建凭证表失败: {e}") from e

    def insert(self, record: CredentialRecord) -> None:
        """
        追加一行凭证记录。无幂等键，重复调用会产生重复行。
        :raises StoreError: 连接或约束失败。
        """
        values = {
            "student_id": record.student_id,
            "student_name": record.student_name,
            "course": record.course,
            "issued_date": record.issued_date,
            "ipfs_hash": record.content_address,
            "pdf_file": record.raw_bytes,
            "created_at": record.created_at or datetime.now(timezone.utc),
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(credentials_table).values(**values))
        except sa_exc.TimeoutError as e:
            raise StoreTimeoutError(f"获取数据库连接超时: {e}") from e
        except sa_exc.SQLAlchemyError as e:
            raise StoreError(f"写入凭证记录失败: {e}") from e

    def find_by_student_id(self, student_id: str) -> CredentialRecord | None:
        """
        按 studentID 查询最新的一条记录；不存在时返回 None。
        :raises StoreError: 连接失败。
        """
        t = credentials_table
        stmt = (
            select(t)
            .where(t.c.student_id == student_id)
            .order_by(t.c.id.desc())
            .limit(1)
        )
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except sa_exc.TimeoutError as e:
            raise StoreTimeoutError(f"获取数据库连接超时: {e}") from e
        except sa_exc.SQLAlchemyError as e:
            raise StoreError(f"查询凭证记录失败: {e}") from e

        if row is None:
            return None
        return CredentialRecord(
            id=row["id"],
            student_id=row["student_id"],
            student_name=row["student_name"],
            course=row["course"],
            issued_date=row["issued_date"],
            content_address=row["ipfs_hash"],
            raw_bytes=row["pdf_file"],
            created_at=row["created_at"],
        )

    def list_content_addresses(self) -> set[str]:
        """返回所有记录引用的内容地址。"""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(credentials_table.c.ipfs_hash).distinct()).all()
        except sa_exc.TimeoutError as e:
            raise StoreTimeoutError(f"获取数据库连接超时: {e}") from e
        except sa_exc.SQLAlchemyError as e:
            raise StoreError(f"查询内容地址失败: {e}") from e
        logger.debug(f"存储中共有 {len(rows)} 个不同的内容地址")
        return {r[0] for r in rows}

    def dispose(self) -> None:
        self.engine.dispose()

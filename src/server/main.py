"""
FastAPI 应用入口点。
"""

from loguru import logger
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

from fastapi import FastAPI
from src.server.credential.router import register_exception_handlers, router as credential_router
from src.server.credential.network import resolve_server_identity
from src.server.credential.publisher import IpfsPublisher
from src.server.credential.store import CredentialStore, create_store_engine

from src.server.config import config


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 网络身份只在启动时解析一次，之后只读
    identity = resolve_server_identity()
    logger.info(f"本机局域网地址: {identity.local_address}")

    store = CredentialStore(
        create_store_engine(
            config.database_url,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_timeout_s=config.db_pool_timeout_seconds,
            connect_timeout_s=config.db_connect_timeout_seconds,
        )
    )
    if config.db_auto_create:
        try:
            store.create_schema()
        except Exception as e:
            logger.warning(f"启动时未能创建凭证表：{e}")

    publisher = IpfsPublisher(
        config.ipfs_add_url,
        config.ipfs_pin_ls_url,
        timeout_s=config.ipfs_timeout_seconds,
    )

    app.state.identity = identity
    app.state.store = store
    app.state.publisher = publisher
    try:
        yield
    finally:
        logger.info("应用关闭，正在释放连接...")
        publisher.close()
        store.dispose()


app = FastAPI(title="IPFS Credential Issuance Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(credential_router)
register_exception_handlers(app)

logger.info(f"config: {config.model_dump_json(indent=4)}")

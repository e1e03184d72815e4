"""
凭证签发与验证服务的 FastAPI 路由定义。

运行期依赖（存储、发布器、网络身份）由应用 lifespan 挂载在 app.state 上。
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from . import services
from .errors import CredentialError, IssuanceError
from .publisher import IpfsPublisher
from .schemas import (
    ErrorResponse,
    IssueRequest,
    IssueResponse,
    NotFoundResponse,
    OrphanReport,
    ServerIdentity,
    VerifyResponse,
)
from .store import CredentialStore

router = APIRouter(prefix="/api", tags=["Credential"])


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_publisher(request: Request) -> IpfsPublisher:
    return request.app.state.publisher


def get_identity(request: Request) -> ServerIdentity:
    return request.app.state.identity


def _error_response(e: Exception) -> JSONResponse:
    stage = getattr(e, "stage", None)
    body = ErrorResponse(error=str(e), stage=stage)
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content=NotFoundResponse().model_dump())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # 请求体不合法同样只返回不透明的 500，不暴露 FastAPI 默认的 422 结构
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.warning(f"请求参数无效 ({request.url.path}): {details}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=f"请求参数无效: {details}").model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """挂载本服务的异常处理器，保证响应只有成功 / 未找到 / 500 三种形态。"""
    app.add_exception_handler(RequestValidationError, _validation_error_handler)


@router.post(
    "/issue",
    response_model=IssueResponse,
    responses={500: {"model": ErrorResponse}},
)
async def issue_credential(
    req: IssueRequest,
    store: CredentialStore = Depends(get_store),
    publisher: IpfsPublisher = Depends(get_publisher),
    identity: ServerIdentity = Depends(get_identity),
):
    """
    渲染证书、发布到内容存储并入库，返回内容地址与访问 URL。
    """
    try:
        return await run_in_threadpool(
            services.issue_credential_service,
            req,
            publisher=publisher,
            store=store,
            identity=identity,
        )
    except IssuanceError as e:
        logger.error(f"签发失败 (stage={e.stage}, studentID={req.studentID}): {e}")
        return _error_response(e)
    except Exception as e:
        # 捕获所有未预期的错误并返回 500
        logger.exception(f"签发时发生未预期错误: {e}")
        return _error_response(e)


@router.get(
    "/verify/{studentID}",
    response_model=VerifyResponse,
    responses={404: {"model": NotFoundResponse}, 500: {"model": ErrorResponse}},
)
async def verify_credential(
    studentID: str,
    store: CredentialStore = Depends(get_store),
    identity: ServerIdentity = Depends(get_identity),
):
    """
    按 studentID 查询凭证记录，返回记录信息与访问 URL。
    """
    try:
        result = await run_in_threadpool(
            services.verify_credential_service, studentID, store=store, identity=identity
        )
    except CredentialError as e:
        logger.error(f"验证失败 (studentID={studentID}): {e}")
        return _error_response(e)
    except Exception as e:
        logger.exception(f"验证时发生未预期错误: {e}")
        return _error_response(e)

    if result is None:
        return _not_found()
    return result


@router.get(
    "/verify/{studentID}/document",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"model": NotFoundResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_credential_document(
    studentID: str,
    store: CredentialStore = Depends(get_store),
):
    """
    返回本地存档的证书 PDF，与内容存储中的副本逐字节一致。
    """
    try:
        data = await run_in_threadpool(
            services.get_credential_document_service, studentID, store=store
        )
    except CredentialError as e:
        logger.error(f"获取证书文档失败 (studentID={studentID}): {e}")
        return _error_response(e)
    except Exception as e:
        logger.exception(f"获取证书文档时发生未预期错误: {e}")
        return _error_response(e)

    if data is None:
        return _not_found()
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{quote(studentID)}.pdf"'},
    )


@router.get(
    "/reconcile/orphans",
    response_model=OrphanReport,
    responses={500: {"model": ErrorResponse}},
)
async def find_orphans(
    store: CredentialStore = Depends(get_store),
    publisher: IpfsPublisher = Depends(get_publisher),
):
    """
    列出已发布但未被任何记录引用的内容地址。
    """
    try:
        return await run_in_threadpool(
            services.find_orphans_service, publisher=publisher, store=store
        )
    except CredentialError as e:
        logger.error(f"孤儿内容对账失败: {e}")
        return _error_response(e)
    except Exception as e:
        logger.exception(f"孤儿内容对账时发生未预期错误: {e}")
        return _error_response(e)


@router.get("/health")
async def health(identity: ServerIdentity = Depends(get_identity)) -> dict:
    return {"status": "ok", "local_address": identity.local_address}

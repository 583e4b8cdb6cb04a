"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import payments as payments_routes
from api.dependencies import get_keyed_lock
from api.middleware import RequestIDMiddleware, LocaleMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.i18n import t
from core.logging_config import get_logger, configure_logging
from core.settings import payment_settings


# 初始化日志：在入口处显式配置
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info(
        "application_startup",
        provider=payment_settings.default_provider,
        server_url=payment_settings.sofort.server_url,
        lock_backend=payment_settings.lock.backend,
    )
    yield
    # 关闭对账锁（Redis 连接）
    close = getattr(get_keyed_lock(), "aclose", None)
    if callable(close):
        await close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="SOFORT 支付网关客户端与对账服务",
)

# 添加中间件（注意顺序：从下往上执行）
app.add_middleware(LocaleMiddleware)
app.add_middleware(RequestIDMiddleware)

# 注册全局异常处理器
register_exception_handlers(app)

# 回调地址固定为 {base_url}/sofort/...，因此不加 /api/v1 前缀
app.include_router(payments_routes.router)


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(data={"status": "healthy"}, message=t("OK"))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )

# stagehand/app.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from stagehand import __version__

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- 启动阶段 ---
    logger.info(f"--- {app.title} 已就绪 ---")
    yield
    # --- 关闭阶段 ---
    logger.info(f"--- {app.title} 正在关闭 ---")


def create_app(title: str = "stagehand", version: str = __version__) -> FastAPI:
    """
    应用工厂函数。
    中间件和路由不在这里添加，而是由 Server.config() 按顺序挂载。
    """
    return FastAPI(title=title, version=version, lifespan=lifespan)

# stagehand/host/__init__.py
from stagehand.host.fastapi_host import FastAPIHost, UvicornHandle
from stagehand.host.middleware import default_middleware, request_logger

__all__ = ["FastAPIHost", "UvicornHandle", "default_middleware", "request_logger"]

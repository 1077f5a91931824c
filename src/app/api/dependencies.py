from collections.abc import AsyncIterator
from functools import lru_cache

from ..core.config import Settings, settings
from ..services.efsession import LoginPipeline, PlatformClient


def get_settings() -> Settings:
    return settings


@lru_cache
def _login_pipeline() -> LoginPipeline:
    return LoginPipeline.from_settings(settings)


def get_login_pipeline() -> LoginPipeline:
    """Process-wide pipeline. It holds no per-login state; every call opens its own browser."""
    return _login_pipeline()


async def get_platform_client() -> AsyncIterator[PlatformClient]:
    async with PlatformClient(settings) as client:
        yield client


async def close_login_pipeline() -> None:
    """Release the pipeline's HTTP clients on shutdown, if it was ever built."""
    if _login_pipeline.cache_info().currsize:
        await _login_pipeline().aclose()
        _login_pipeline.cache_clear()

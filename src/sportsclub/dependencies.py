"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends

from sportsclub.auth.otp import OtpManager
from sportsclub.auth.session import SessionIssuer
from sportsclub.config import get_settings
from sportsclub.database import get_session_factory
from sportsclub.email.delivery import CodeDelivery, get_code_delivery
from sportsclub.redis_client import get_optional_redis
from sportsclub.storage import Stores
from sportsclub.storage.memory import get_memory_stores
from sportsclub.storage.sql import sql_stores


async def get_stores() -> AsyncGenerator[Stores, None]:
    """Yield the stores for one request, backed by ``storage_backend``."""
    if get_settings().storage_backend == "memory":
        yield get_memory_stores()
        return
    async with get_session_factory()() as session:
        yield sql_stores(session)


def get_session_issuer(stores: Stores = Depends(get_stores)) -> SessionIssuer:  # noqa: B008
    return SessionIssuer(stores.accounts)


def get_otp_manager(
    stores: Stores = Depends(get_stores),  # noqa: B008
    sessions: SessionIssuer = Depends(get_session_issuer),  # noqa: B008
    delivery: CodeDelivery = Depends(get_code_delivery),  # noqa: B008
) -> OtpManager:
    return OtpManager(stores.accounts, delivery, sessions, redis=get_optional_redis())

from linkup.core.database.postgres import Base, get_async_session_factory
from linkup.core.database.redis_client import close_redis_client, get_redis_client

__all__ = [
    "Base",
    "get_async_session_factory",
    "get_redis_client",
    "close_redis_client",
]

from linkup.core.middleware.request_id import request_id_middleware
from linkup.core.middleware.error_handler import (
    error_envelope_middleware,
    register_exception_handlers,
)

__all__ = [
    "request_id_middleware",
    "error_envelope_middleware",
    "register_exception_handlers",
]

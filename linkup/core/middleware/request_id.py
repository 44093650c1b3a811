"""
Request correlation id.

Reuses the caller's ``X-Request-ID`` when it looks sane, otherwise mints a
UUID4.  The id is echoed on every response and embedded in error envelopes.
"""
import uuid
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INBOUND_LENGTH = 128


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    inbound = request.headers.get(REQUEST_ID_HEADER, "").strip()
    request_id = inbound if 0 < len(inbound) <= _MAX_INBOUND_LENGTH else str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response

"""
Request tracing for the payment endpoints.

Every request gets a request_id in the structlog context. Handlers add the
order and gateway they are working on with ``bind_payment_context`` so
gateway and order-store log lines can be traced back to one checkout.
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from structlog.contextvars import bind_contextvars, clear_contextvars

from paygate.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Sent by the storefront's supabase-js client
CLIENT_INFO_HEADER = "X-Client-Info"


def bind_payment_context(order_id: Optional[str] = None, gateway: Optional[str] = None) -> None:
    """Attach checkout identifiers to every later log line of this request."""
    context = {}
    if order_id:
        context["order_id"] = order_id
    if gateway:
        context["gateway"] = gateway
    if context:
        bind_contextvars(**context)


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind request_id, method and path to the log context for the request.
    The id is taken from X-Request-ID when the caller sends one and echoed back.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    clear_contextvars()
    bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    request.state.request_id = request_id

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
        client_info=request.headers.get(CLIENT_INFO_HEADER),
    )
    start_time = time.time()

    try:
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    except Exception as exc:
        logger.error(
            "request_failed",
            exc_info=exc,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        raise
    finally:
        clear_contextvars()

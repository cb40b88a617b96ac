import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from subledger.core.logging import request_id_ctx_var, latency_bucket_ms, _safe_truncate

logger = logging.getLogger("subledger")

# Ledger writes mutate balances; reads only report
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request_id to each ledger call and log who signed it and how it ended."""

    def __init__(self, app, header_name: str = "x-request-id", signer_header: str = "x-signer"):
        super().__init__(app)
        self.header_name = header_name
        self.signer_header = signer_header

    async def dispatch(self, request, call_next):
        rid = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[self.header_name] = rid

        extra = {
            "request_id": rid,
            "path": request.url.path,
            "method": request.method,
            "status": response.status_code,
            "latency_bucket": latency_bucket_ms(elapsed_ms),
            "event_type": "ledger_write" if request.method in WRITE_METHODS else "ledger_read",
        }
        signer = request.headers.get(self.signer_header)
        if signer:
            extra["signer"] = _safe_truncate(signer.strip(), 100)
        logger.info("request.complete", extra=extra)
        return response

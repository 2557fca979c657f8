"""
Timing Middleware pour Cocorico API.

Mesure et log le temps de reponse de chaque requete.
"""
import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware pour mesurer le temps de reponse.

    Ajoute le header X-Response-Time (en ms) et log en WARNING
    les requetes plus lentes que slow_threshold_ms. Les uploads
    OCR sont les candidats habituels.
    """

    def __init__(self, app, slow_threshold_ms: int = 1000):
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time"] = f"{process_time_ms:.2f}ms"

        if process_time_ms > self.slow_threshold_ms:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time_ms:.2f}ms (threshold: {self.slow_threshold_ms}ms) "
                f"[request_id={request_id}]"
            )

        return response

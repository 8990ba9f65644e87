"""
Audit and request logging middleware (Starlette BaseHTTPMiddleware).
Every request gets a request id and an HTTP context for the log filters;
with AUDIT_LOGGING_ENABLED one audit record is written per request.
"""
import json
import socket
import time
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from atehna_oms.logging.config import LoggingConfig
from atehna_oms.logging.utils import get_app_logger, init_audit_logger
from atehna_oms.middlewares.request_context import clear_request_context, create_request_id, request_context

# settings
from atehna_oms.config.settings import AtehnaConfigs
configs = AtehnaConfigs()


class AuditMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.logger = get_app_logger('atehna_oms.requests')
        self.exclude_audit_paths = exclude_paths or ['/health', '/docs', '/redoc', '/openapi.json']
        self.hostname = socket.gethostname()
        self.version = configs.APP_VERSION

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = create_request_id()
        start_time = time.time()
        timestamp = datetime.now(timezone.utc).isoformat()

        request_context.request_method = request.method
        request_context.request_path = request.url.path

        should_audit = LoggingConfig.AUDIT_LOGGING_ENABLED and not any(
            request.url.path.startswith(p) for p in self.exclude_audit_paths
        )
        body_bytes = await request.body() if should_audit else b""

        try:
            response = await call_next(request)
            duration = (time.time() - start_time) * 1000
            if should_audit:
                audit_data = self._build_audit_data(request, response, body_bytes, duration, request_id, timestamp)
                init_audit_logger().info("Audit log", extra=audit_data)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            duration = (time.time() - start_time) * 1000
            self.logger.error(
                f"request_failed | method={request.method} path={request.url.path} "
                f"exception={exc.__class__.__name__} duration_ms={duration:.0f}",
                exc_info=True,
            )
            if should_audit:
                audit_data = self._build_audit_data(request, Response(status_code=500), body_bytes, duration, request_id, timestamp)
                audit_data['exception'] = exc.__class__.__name__
                init_audit_logger().info("Audit log (exception)", extra=audit_data)
            raise
        finally:
            clear_request_context()

    @staticmethod
    def _mask_headers(headers) -> dict:
        """Authorization values never reach the audit log."""
        return {k: ('****' if k.lower() == 'authorization' else v) for k, v in headers.items()}

    def _build_audit_data(
        self,
        request: Request,
        response: Response,
        body_bytes: bytes,
        duration: float,
        request_id: str,
        timestamp: str,
    ) -> dict:
        try:
            if not body_bytes:
                body_data = {}
            elif 'application/json' in request.headers.get('content-type', ''):
                body_data = json.loads(body_bytes.decode('utf-8'))
            else:
                body_data = body_bytes.decode('utf-8')[:1000]
        except (UnicodeDecodeError, json.JSONDecodeError):
            body_data = {}

        # response bodies only for non-2xx and when the flag is on; streamed bodies are skipped
        status = getattr(response, 'status_code', 0)
        response_data = ''
        if LoggingConfig.CAPTURE_RESPONSE_BODY and not 200 <= status < 300:
            body = getattr(response, 'body', None)
            if body:
                response_data = body.decode('utf-8', errors='replace')[:1000]

        return {
            'duration': round(duration, 2),
            'hostname': self.hostname,
            'request': {
                "GET": dict(request.query_params),
                "BODY": body_data,
                "HEADERS": self._mask_headers(dict(request.headers)),
            },
            'request_id': request_id,
            'request_method': request.method,
            'request_path': request.url.path,
            'order_id': request_context.order_id,
            'response': response_data,
            'status_code': status,
            'started_at': timestamp,
            'version': self.version,
        }

import secrets

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from atehna_oms.core.constants import Messages
from atehna_oms.logging.utils import get_app_logger

logger = get_app_logger("atehna_oms.cron_auth")


class CronSecretMiddleware(BaseHTTPMiddleware):
    """
    Guards the scheduled maintenance endpoints with a shared secret sent as
    ``Authorization: Bearer <secret>``. No configured secret leaves them open.
    """

    include_paths = ("/api/admin/archive/cleanup",)

    def __init__(self, app, cron_secret: str = ""):
        super().__init__(app)
        self.cron_secret = cron_secret or ""
        if not self.cron_secret:
            logger.warning("cron_secret_not_configured | cleanup endpoint is not protected")

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or not request.url.path.startswith(self.include_paths):
            return await call_next(request)

        if not self.cron_secret:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        token = auth_header[len("Bearer "):] if auth_header.startswith("Bearer ") else ""
        if not token or not secrets.compare_digest(token.encode(), self.cron_secret.encode()):
            logger.warning(f"cron_secret_rejected | path={request.url.path} header_present={bool(auth_header)}")
            return JSONResponse(status_code=401, content={"message": Messages.UNAUTHORIZED})

        return await call_next(request)

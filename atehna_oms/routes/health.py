from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    configs = request.app.state.configs
    database = request.app.state.database
    details = {
        "status": "healthy",
        "version": configs.APP_VERSION,
        "service": configs.APP_NAME,
        "database": "ok" if database.ping() else "error",
    }
    return JSONResponse(content=details)

from fastapi import APIRouter
from atehna_oms.routes.admin.archive import archive_router
from atehna_oms.routes.admin.orders import orders_router

admin_router = APIRouter(tags=["admin"])
admin_router.include_router(archive_router)
admin_router.include_router(orders_router)

__all__ = ["admin_router"]

from fastapi import APIRouter

from .auth_routes import router as auth_router
from .field_routes import router as field_router
from .payment_routes import router as payment_router
from .reservation_routes import router as reservation_router
from .user_routes import router as user_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(user_router)
router.include_router(field_router)
router.include_router(reservation_router)
router.include_router(payment_router)

__all__ = [
    "router",
    "auth_router",
    "field_router",
    "payment_router",
    "reservation_router",
    "user_router",
]

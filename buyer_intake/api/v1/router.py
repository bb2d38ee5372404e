from fastapi import APIRouter

from buyer_intake.api.v1.endpoints import auth, buyers, health

router = APIRouter(prefix="/api/v1")

router.include_router(auth.router)
router.include_router(buyers.router)
router.include_router(health.router)

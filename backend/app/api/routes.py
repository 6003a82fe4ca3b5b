from fastapi import APIRouter

from app.api.admin import router as admin_router
from app.api.messages import router as messages_router
from app.api.notifications import router as notifications_router
from app.api.rooms import router as rooms_router
from app.api.users import router as users_router

router = APIRouter()

router.include_router(rooms_router)
router.include_router(messages_router)
router.include_router(notifications_router)
router.include_router(users_router)
router.include_router(admin_router)


@router.get("/", tags=["root"])
def read_root() -> dict[str, str]:
    return {"message": "Welcome to the Tijaniyah Community API"}

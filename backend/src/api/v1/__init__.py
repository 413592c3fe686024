from fastapi import APIRouter

from . import auth_controller, cat_controller, user_controller

version_1 = APIRouter()

version_1.include_router(
    cat_controller.cat_router,
    prefix="/cats",
    tags=["Cat Router"]
)

version_1.include_router(
    user_controller.user_router,
    prefix="/users",
    tags=["User Router"]
)

version_1.include_router(
    auth_controller.auth_router,
    prefix="/auth",
    tags=["Auth Router"]
)

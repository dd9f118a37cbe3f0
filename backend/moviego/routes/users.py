"""
MovieGo API: User Routes
========================

    POST /v1/users              register (201, account starts inactive)
    PUT  /v1/users/activated    redeem an activation token
"""

from fastapi import APIRouter, Depends

from moviego.container import Container
from moviego.dependencies import get_container
from moviego.schemas.user import ActivationRequest, UserCreate

router = APIRouter(prefix="/v1/users", tags=["Users"])


@router.post("", status_code=201, summary="Register a user")
async def register_user(data: UserCreate, container: Container = Depends(get_container)) -> dict:
    user = await container.users.register(data)
    return {"user": user.model_dump()}


@router.put("/activated", summary="Activate a user")
async def activate_user(data: ActivationRequest, container: Container = Depends(get_container)) -> dict:
    user = await container.users.activate(data.token)
    return {"user": user.model_dump()}

"""
MovieGo API: Token Routes
=========================

    POST /v1/tokens/authentication   exchange email + password for a bearer token
"""

from fastapi import APIRouter, Depends

from moviego.container import Container
from moviego.dependencies import get_container
from moviego.schemas.token import TokenResponse
from moviego.schemas.user import CredentialsRequest

router = APIRouter(prefix="/v1/tokens", tags=["Tokens"])


@router.post("/authentication", status_code=201, summary="Create an authentication token")
async def create_authentication_token(
    data: CredentialsRequest,
    container: Container = Depends(get_container),
) -> dict:
    token = await container.tokens.create_authentication_token(data.email, data.password)
    return {"authentication_token": TokenResponse.from_token(token).model_dump()}

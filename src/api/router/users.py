from fastapi import APIRouter, Depends

from src.api.controller.auth.dto.output_dto import UserViewDto
from src.core.dependencies import get_current_user
from src.core.service.auth.models.user import User
from src.core.logger.logger import logger

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserViewDto)
async def get_me(user: User = Depends(get_current_user)):
    """
    Protected endpoint that requires a valid access token
    Returns the user the token was issued to
    """
    logger.info(
        "Authenticated access to profile",
        extra={"user_id": str(user.id), "wallet_address": user.address}
    )
    return UserViewDto.from_user(user)

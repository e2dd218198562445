from fastapi import APIRouter, status
from schemas.auth_schemas import UserResponse
from utils.clock import as_utc
from utils.deps import user_dependency


router = APIRouter(
    prefix="/users",
    tags=["users"]
)


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_user_info(user: user_dependency):
    """
    Get current user info (protected endpoint).
    """
    return UserResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        created_at=as_utc(user.created_at),
    )

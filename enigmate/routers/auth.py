from fastapi import APIRouter, Depends
from enigmate.dependencies import SupabaseUser, get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me", response_model=SupabaseUser)
async def get_current_user_info(current_user: SupabaseUser = Depends(get_current_user)):
    """Get current authenticated user info."""
    return current_user

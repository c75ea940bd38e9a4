"""
Users Router

Saved colleges, dashboard and preferences for the current user.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from collegehub.dependencies import get_current_user
from collegehub.models.user import Preferences, PreferencesUpdate, User
from collegehub.services.user_service import UserService


router = APIRouter()
user_service = UserService()


@router.get("/saved-colleges")
async def get_saved_colleges(current_user: User = Depends(get_current_user)) -> List[dict]:
    return await user_service.get_saved_colleges(current_user.user_id)


@router.post("/save-college/{college_id}")
async def toggle_save_college(
    college_id: str, current_user: User = Depends(get_current_user)
) -> dict:
    """Save the college, or remove it if it is already saved."""
    saved = await user_service.toggle_saved_college(current_user.user_id, college_id)
    if saved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="College not found")

    return {
        "saved": saved,
        "message": "College saved successfully" if saved else "College removed from saved list",
    }


@router.get("/dashboard")
async def get_dashboard(current_user: User = Depends(get_current_user)) -> dict:
    dashboard = await user_service.get_dashboard(current_user.user_id)
    if dashboard is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return dashboard


@router.put("/preferences", response_model=Preferences)
async def update_preferences(
    update: PreferencesUpdate, current_user: User = Depends(get_current_user)
):
    user = await user_service.update_preferences(current_user.user_id, update)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user.profile.preferences

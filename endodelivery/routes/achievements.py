from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import achievement_service
from ..api_deps import get_current_user, require_admin
from ..auth_models import User
from ..schemas import AchievementIn, AchievementOut, AchievementUpdate, AwardOut, UserAchievementOut

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


@router.get("", response_model=list[AchievementOut])
def api_achievements(user: User = Depends(get_current_user)):
    return achievement_service.list_achievements()


@router.get("/user", response_model=list[UserAchievementOut])
def api_user_achievements(user: User = Depends(get_current_user)):
    return achievement_service.user_achievements()


@router.get("/{achievement_id}", response_model=AchievementOut)
def api_achievement(achievement_id: int, user: User = Depends(get_current_user)):
    return achievement_service.get_achievement(achievement_id)


@router.post("", response_model=AchievementOut, status_code=status.HTTP_201_CREATED)
def api_create_achievement(payload: AchievementIn, admin: User = Depends(require_admin)):
    return achievement_service.create_achievement(payload.model_dump())


@router.put("/{achievement_id}", response_model=AchievementOut)
def api_update_achievement(achievement_id: int, payload: AchievementUpdate, admin: User = Depends(require_admin)):
    return achievement_service.update_achievement(achievement_id, payload.model_dump(exclude_unset=True))


@router.delete("/{achievement_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_achievement(achievement_id: int, admin: User = Depends(require_admin)) -> Response:
    achievement_service.delete_achievement(achievement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{achievement_id}/award", response_model=AwardOut)
def api_award_achievement(achievement_id: int, admin: User = Depends(require_admin)):
    # 404 se non esiste, 400 se già assegnata
    achievement_service.get_achievement(achievement_id)
    if not achievement_service.award_achievement(achievement_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Achievement already awarded")
    return AwardOut(success=True)

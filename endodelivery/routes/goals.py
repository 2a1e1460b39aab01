from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from .. import goal_service
from ..api_deps import get_current_user, require_admin
from ..auth_models import User
from ..schemas import GoalCheckOut, GoalIn, GoalOut, GoalProgressIn, GoalUpdate

router = APIRouter(prefix="/api/financial-goals", tags=["financial goals"])


@router.get("", response_model=list[GoalOut])
def api_goals(user: User = Depends(get_current_user)):
    return goal_service.list_goals()


@router.get("/active", response_model=list[GoalOut])
def api_active_goals(user: User = Depends(get_current_user)):
    return goal_service.list_active_goals()


@router.post("/check-progress", response_model=GoalCheckOut)
def api_check_progress(user: User = Depends(get_current_user)):
    return goal_service.check_goals_progress()


@router.get("/{goal_id}", response_model=GoalOut)
def api_goal(goal_id: int, user: User = Depends(get_current_user)):
    return goal_service.get_goal(goal_id)


@router.post("", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
def api_create_goal(payload: GoalIn, admin: User = Depends(require_admin)):
    return goal_service.create_goal(payload.model_dump())


@router.put("/{goal_id}", response_model=GoalOut)
def api_update_goal(goal_id: int, payload: GoalUpdate, admin: User = Depends(require_admin)):
    return goal_service.update_goal(goal_id, payload.model_dump(exclude_unset=True))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_goal(goal_id: int, admin: User = Depends(require_admin)) -> Response:
    goal_service.delete_goal(goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{goal_id}/progress", response_model=GoalOut)
def api_goal_progress(goal_id: int, payload: GoalProgressIn, user: User = Depends(get_current_user)):
    return goal_service.update_goal_progress(goal_id, payload.value)

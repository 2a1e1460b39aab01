from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from .. import services
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import DentistIn, DentistOut, DentistUpdate

router = APIRouter(prefix="/api/dentists", tags=["dentists"])


@router.get("", response_model=list[DentistOut])
def api_dentists(active: bool = Query(False), user: User = Depends(get_current_user)):
    return services.list_dentists(only_active=active)


@router.get("/{dentist_id}", response_model=DentistOut)
def api_dentist(dentist_id: int, user: User = Depends(get_current_user)):
    return services.get_dentist(dentist_id)


@router.post("", response_model=DentistOut, status_code=status.HTTP_201_CREATED)
def api_create_dentist(payload: DentistIn, user: User = Depends(get_current_user)):
    return services.create_dentist(payload.model_dump())


@router.put("/{dentist_id}", response_model=DentistOut)
def api_update_dentist(dentist_id: int, payload: DentistUpdate, user: User = Depends(get_current_user)):
    return services.update_dentist(dentist_id, payload.model_dump(exclude_unset=True))


@router.delete("/{dentist_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_dentist(dentist_id: int, user: User = Depends(get_current_user)) -> Response:
    services.delete_dentist(dentist_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

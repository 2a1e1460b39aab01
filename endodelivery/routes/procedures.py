from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from .. import services
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import ProcedureDetailOut, ProcedureIn, ProcedureOut, ProcedureUpdate

router = APIRouter(prefix="/api/procedures", tags=["procedures"])


@router.get("", response_model=list[ProcedureDetailOut])
def api_procedures(
    patient_id: int | None = Query(None, alias="patientId"),
    dentist_id: int | None = Query(None, alias="dentistId"),
    user: User = Depends(get_current_user),
):
    return services.list_procedures(patient_id=patient_id, dentist_id=dentist_id)


@router.get("/{procedure_id}", response_model=ProcedureDetailOut)
def api_procedure(procedure_id: int, user: User = Depends(get_current_user)):
    return services.get_procedure_detail(procedure_id)


@router.post("", response_model=ProcedureOut, status_code=status.HTTP_201_CREATED)
def api_create_procedure(payload: ProcedureIn, user: User = Depends(get_current_user)):
    return services.create_procedure(payload.model_dump())


@router.put("/{procedure_id}", response_model=ProcedureOut)
def api_update_procedure(procedure_id: int, payload: ProcedureUpdate, user: User = Depends(get_current_user)):
    return services.update_procedure(procedure_id, payload.model_dump(exclude_unset=True))


@router.delete("/{procedure_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_procedure(procedure_id: int, user: User = Depends(get_current_user)) -> Response:
    services.delete_procedure(procedure_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

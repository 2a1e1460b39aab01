from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from .. import services
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import PatientIn, PatientOut, PatientUpdate

router = APIRouter(prefix="/api/patients", tags=["patients"])


@router.get("", response_model=list[PatientOut])
def api_patients(user: User = Depends(get_current_user)):
    return services.list_patients()


@router.get("/{patient_id}", response_model=PatientOut)
def api_patient(patient_id: int, user: User = Depends(get_current_user)):
    return services.get_patient(patient_id)


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def api_create_patient(payload: PatientIn, user: User = Depends(get_current_user)):
    return services.create_patient(payload.model_dump())


@router.put("/{patient_id}", response_model=PatientOut)
def api_update_patient(patient_id: int, payload: PatientUpdate, user: User = Depends(get_current_user)):
    return services.update_patient(patient_id, payload.model_dump(exclude_unset=True))


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_patient(patient_id: int, user: User = Depends(get_current_user)) -> Response:
    services.delete_patient(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

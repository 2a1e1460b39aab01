from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from .. import services
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import AppointmentDetailOut, AppointmentIn, AppointmentOut, AppointmentUpdate, ProcedureOut

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


@router.get("", response_model=list[AppointmentDetailOut])
def api_appointments(
    patient_id: int | None = Query(None, alias="patientId"),
    dentist_id: int | None = Query(None, alias="dentistId"),
    user: User = Depends(get_current_user),
):
    return services.list_appointments(patient_id=patient_id, dentist_id=dentist_id)


@router.get("/upcoming", response_model=list[AppointmentDetailOut])
def api_upcoming_appointments(limit: int = Query(5, ge=1, le=100), user: User = Depends(get_current_user)):
    return services.upcoming_appointments(limit=limit)


@router.get("/{appointment_id}", response_model=AppointmentDetailOut)
def api_appointment(appointment_id: int, user: User = Depends(get_current_user)):
    return services.get_appointment_detail(appointment_id)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def api_create_appointment(payload: AppointmentIn, user: User = Depends(get_current_user)):
    return services.create_appointment(payload.model_dump())


@router.put("/{appointment_id}", response_model=AppointmentOut)
def api_update_appointment(appointment_id: int, payload: AppointmentUpdate, user: User = Depends(get_current_user)):
    return services.update_appointment(appointment_id, payload.model_dump(exclude_unset=True))


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_appointment(appointment_id: int, user: User = Depends(get_current_user)) -> Response:
    services.delete_appointment(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{appointment_id}/convert", response_model=ProcedureOut, status_code=status.HTTP_201_CREATED)
def api_convert_appointment(appointment_id: int, user: User = Depends(get_current_user)):
    return services.convert_appointment_to_procedure(appointment_id)

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from .. import services
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import InvoiceDetailOut, InvoiceIn, InvoiceOut, InvoiceUpdate

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceDetailOut])
def api_invoices(
    procedure_id: int | None = Query(None, alias="procedureId"),
    user: User = Depends(get_current_user),
):
    return services.list_invoices(procedure_id=procedure_id)


@router.get("/{invoice_id}", response_model=InvoiceDetailOut)
def api_invoice(invoice_id: int, user: User = Depends(get_current_user)):
    return services.get_invoice_detail(invoice_id)


@router.post("", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def api_create_invoice(payload: InvoiceIn, user: User = Depends(get_current_user)):
    # la procedura deve esistere
    services.get_procedure(payload.procedure_id)
    return services.create_invoice(payload.model_dump())


@router.put("/{invoice_id}", response_model=InvoiceOut)
def api_update_invoice(invoice_id: int, payload: InvoiceUpdate, user: User = Depends(get_current_user)):
    return services.update_invoice(invoice_id, payload.model_dump(exclude_unset=True))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_invoice(invoice_id: int, user: User = Depends(get_current_user)) -> Response:
    services.delete_invoice(invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

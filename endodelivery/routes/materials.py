from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from .. import material_service
from ..api_deps import get_current_user
from ..auth_models import User
from ..schemas import (
    MaterialIn,
    MaterialOut,
    MaterialUpdate,
    ProcedureCostOut,
    ProcedureMaterialDetailOut,
    ProcedureMaterialIn,
    ProcedureMaterialOut,
    ProcedureMaterialUpdate,
    StockUpdateIn,
)

router = APIRouter(tags=["materials"])


# Materiali
@router.get("/api/materials", response_model=list[MaterialOut])
def api_materials(user: User = Depends(get_current_user)):
    return material_service.list_materials()


@router.get("/api/materials/low-stock", response_model=list[MaterialOut])
def api_low_stock(user: User = Depends(get_current_user)):
    return material_service.get_low_stock_materials()


@router.get("/api/materials/{material_id}", response_model=MaterialOut)
def api_material(material_id: int, user: User = Depends(get_current_user)):
    return material_service.get_material(material_id)


@router.post("/api/materials", response_model=MaterialOut, status_code=status.HTTP_201_CREATED)
def api_create_material(payload: MaterialIn, user: User = Depends(get_current_user)):
    return material_service.create_material(payload.model_dump())


@router.patch("/api/materials/{material_id}", response_model=MaterialOut)
def api_update_material(material_id: int, payload: MaterialUpdate, user: User = Depends(get_current_user)):
    return material_service.update_material(material_id, payload.model_dump(exclude_unset=True))


@router.delete("/api/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_material(material_id: int, user: User = Depends(get_current_user)) -> Response:
    material_service.delete_material(material_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/api/materials/{material_id}/stock", response_model=MaterialOut)
def api_update_stock(material_id: int, payload: StockUpdateIn, user: User = Depends(get_current_user)):
    return material_service.update_material_stock(material_id, payload.quantity)


# Materiali per tipo di procedura
@router.get("/api/procedure-materials/{procedure_type}", response_model=list[ProcedureMaterialDetailOut])
def api_procedure_materials(procedure_type: str, user: User = Depends(get_current_user)):
    return material_service.procedure_materials(procedure_type)


@router.post("/api/procedure-materials", response_model=ProcedureMaterialOut, status_code=status.HTTP_201_CREATED)
def api_add_procedure_material(payload: ProcedureMaterialIn, user: User = Depends(get_current_user)):
    return material_service.add_material_to_procedure_type(payload.model_dump())


@router.patch("/api/procedure-materials/{link_id}", response_model=ProcedureMaterialOut)
def api_update_procedure_material(
    link_id: int, payload: ProcedureMaterialUpdate, user: User = Depends(get_current_user)
):
    return material_service.update_procedure_material(link_id, payload.model_dump(exclude_unset=True))


@router.delete("/api/procedure-materials/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_remove_procedure_material(link_id: int, user: User = Depends(get_current_user)) -> Response:
    material_service.remove_material_from_procedure_type(link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/procedure-cost/{procedure_type}", response_model=ProcedureCostOut)
def api_procedure_cost(procedure_type: str, user: User = Depends(get_current_user)):
    cost = material_service.calculate_procedure_cost(procedure_type)
    return ProcedureCostOut(
        procedure_type=cost.procedure_type,
        total_cost=cost.total_cost,
        materials=[ProcedureMaterialDetailOut.model_validate(pm) for pm in cost.materials],
    )

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .db import db_session
from .models import Material, ProcedureMaterial
from .services import apply_changes, get_or_raise

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcedureCost:
    procedure_type: str
    total_cost: float
    materials: list[ProcedureMaterial]


# =========================
# Materiali
# =========================
def list_materials() -> list[Material]:
    with db_session() as s:
        return list(s.scalars(select(Material).order_by(Material.name)))


def get_material(material_id: int) -> Material:
    with db_session() as s:
        return get_or_raise(s, Material, material_id, "Material")


def create_material(data: dict[str, Any]) -> Material:
    with db_session() as s:
        m = Material(**data)
        s.add(m)
        s.flush()
        return m


def update_material(material_id: int, data: dict[str, Any]) -> Material:
    with db_session() as s:
        m = get_or_raise(s, Material, material_id, "Material")
        apply_changes(m, data)
        s.flush()
        return m


def delete_material(material_id: int) -> None:
    with db_session() as s:
        s.delete(get_or_raise(s, Material, material_id, "Material"))


def update_material_stock(material_id: int, quantity: float) -> Material:
    """Imposta la giacenza (valore assoluto, non delta)."""
    if quantity < 0:
        raise ValueError("Stock quantity cannot be negative.")

    with db_session() as s:
        m = get_or_raise(s, Material, material_id, "Material")
        previous = m.stock_quantity
        m.stock_quantity = quantity
        s.flush()
        logger.info("Stock for material %s: %s -> %s", m.id, previous, quantity)
        if m.minimum_stock is not None and quantity < m.minimum_stock:
            logger.warning("Material %s (%s) below minimum stock: %s < %s", m.id, m.name, quantity, m.minimum_stock)
        return m


def get_low_stock_materials() -> list[Material]:
    """Materiali con minimum_stock valorizzato e giacenza sotto il minimo."""
    with db_session() as s:
        q = (
            select(Material)
            .where(Material.minimum_stock.is_not(None), Material.stock_quantity < Material.minimum_stock)
            .order_by(Material.name)
        )
        return list(s.scalars(q))


# =========================
# Materiali per tipo di procedura
# =========================
def procedure_materials(procedure_type: str) -> list[ProcedureMaterial]:
    """Legami del tipo di procedura, ciascuno con il proprio materiale già caricato."""
    with db_session() as s:
        q = (
            select(ProcedureMaterial)
            .options(selectinload(ProcedureMaterial.material))
            .where(ProcedureMaterial.procedure_type == procedure_type)
            .order_by(ProcedureMaterial.id)
        )
        return list(s.scalars(q))


def get_procedure_material(link_id: int) -> ProcedureMaterial:
    with db_session() as s:
        return get_or_raise(s, ProcedureMaterial, link_id, "Procedure material")


def add_material_to_procedure_type(data: dict[str, Any]) -> ProcedureMaterial:
    with db_session() as s:
        get_or_raise(s, Material, data["material_id"], "Material")
        pm = ProcedureMaterial(**data)
        s.add(pm)
        s.flush()
        return pm


def update_procedure_material(link_id: int, data: dict[str, Any]) -> ProcedureMaterial:
    with db_session() as s:
        pm = get_or_raise(s, ProcedureMaterial, link_id, "Procedure material")
        if "material_id" in data:
            get_or_raise(s, Material, data["material_id"], "Material")
        apply_changes(pm, data)
        s.flush()
        return pm


def remove_material_from_procedure_type(link_id: int) -> None:
    with db_session() as s:
        s.delete(get_or_raise(s, ProcedureMaterial, link_id, "Procedure material"))


def calculate_procedure_cost(procedure_type: str) -> ProcedureCost:
    """Costo materiali: somma di quantity_used * unit_price sui legami del tipo."""
    links = procedure_materials(procedure_type)
    total = sum(pm.quantity_used * pm.material.unit_price for pm in links)
    return ProcedureCost(procedure_type=procedure_type, total_cost=float(total), materials=links)

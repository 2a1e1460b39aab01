from datetime import datetime

import pytest

from endodelivery import achievement_service, material_service
from endodelivery.errors import NotFoundError


# =========================
# Achievements
# =========================
def _achievement(title="First Goal"):
    return achievement_service.create_achievement(
        {"title": title, "description": "Complete a financial goal.", "point_value": 20}
    )


def test_award_achievement_only_once():
    a = _achievement()
    earned = datetime(2024, 1, 15, 10, 0)

    assert achievement_service.award_achievement(a.id, now=earned) is True
    assert achievement_service.award_achievement(a.id) is False

    awarded = achievement_service.user_achievements()
    assert len(awarded) == 1
    assert awarded[0]["id"] == a.id
    assert awarded[0]["earned_date"] == earned


def test_award_missing_achievement_returns_false():
    assert achievement_service.award_achievement(404) is False
    assert achievement_service.user_achievements() == []


def test_deleting_achievement_removes_its_award():
    a = _achievement()
    achievement_service.award_achievement(a.id)
    achievement_service.delete_achievement(a.id)

    assert achievement_service.user_achievements() == []
    assert achievement_service.is_awarded(a.id) is False


def test_update_achievement():
    a = _achievement()
    updated = achievement_service.update_achievement(a.id, {"point_value": 50})
    assert updated.point_value == 50
    assert updated.title == "First Goal"

    with pytest.raises(NotFoundError):
        achievement_service.update_achievement(999, {"point_value": 1})


# =========================
# Materials
# =========================
def _material(name, unit_price=1.0, stock=10.0, minimum=None):
    return material_service.create_material(
        {"name": name, "unit_price": unit_price, "stock_quantity": stock, "minimum_stock": minimum}
    )


def test_low_stock_ignores_materials_without_minimum():
    low = _material("Lima K #15", stock=2, minimum=5)
    _material("Cone de guta-percha", stock=10, minimum=5)
    _material("Hipoclorito 2.5%", stock=0, minimum=None)
    _material("EDTA 17%", stock=5, minimum=5)

    assert [m.id for m in material_service.get_low_stock_materials()] == [low.id]


def test_update_stock_is_absolute():
    m = _material("Lima K #15", stock=2, minimum=5)

    updated = material_service.update_material_stock(m.id, 12)
    assert updated.stock_quantity == 12
    assert material_service.get_low_stock_materials() == []

    with pytest.raises(ValueError):
        material_service.update_material_stock(m.id, -1)
    assert material_service.get_material(m.id).stock_quantity == 12


def test_update_stock_missing_material():
    with pytest.raises(NotFoundError):
        material_service.update_material_stock(999, 3)


def test_procedure_cost_sums_quantity_times_price():
    file_ = _material("Lima rotatória", unit_price=10)
    cone = _material("Cone de papel", unit_price=5)
    sealer = _material("Cimento endodôntico", unit_price=40)

    material_service.add_material_to_procedure_type({"procedure_type": "TREATMENT", "material_id": file_.id, "quantity_used": 2})
    material_service.add_material_to_procedure_type({"procedure_type": "TREATMENT", "material_id": cone.id, "quantity_used": 3})
    material_service.add_material_to_procedure_type({"procedure_type": "RETREATMENT", "material_id": sealer.id, "quantity_used": 1})

    cost = material_service.calculate_procedure_cost("TREATMENT")
    assert cost.total_cost == 35
    assert {pm.material.name for pm in cost.materials} == {"Lima rotatória", "Cone de papel"}


def test_procedure_cost_of_unknown_type_is_zero():
    cost = material_service.calculate_procedure_cost("NOT_A_TYPE")
    assert cost.total_cost == 0
    assert cost.materials == []


def test_link_requires_existing_material():
    with pytest.raises(NotFoundError):
        material_service.add_material_to_procedure_type({"procedure_type": "TREATMENT", "material_id": 999, "quantity_used": 1})


def test_update_and_remove_procedure_material():
    m = _material("Lima rotatória", unit_price=10)
    link = material_service.add_material_to_procedure_type({"procedure_type": "TREATMENT", "material_id": m.id, "quantity_used": 1})

    material_service.update_procedure_material(link.id, {"quantity_used": 4})
    assert material_service.calculate_procedure_cost("TREATMENT").total_cost == 40

    material_service.remove_material_from_procedure_type(link.id)
    assert material_service.procedure_materials("TREATMENT") == []
    with pytest.raises(NotFoundError):
        material_service.get_procedure_material(link.id)

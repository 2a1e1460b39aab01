from datetime import date

import pytest

from endodelivery import dashboard_service, services
from endodelivery.models import Complexity, PaymentStatus, ProcedureType

TODAY = date(2024, 3, 15)


@pytest.fixture
def march_data(make_procedure, other_dentist):
    make_procedure(value=1000, procedure_date=date(2024, 3, 5), complexity=Complexity.HIGH)
    make_procedure(
        value=500,
        procedure_date=date(2024, 3, 10),
        procedure_type=ProcedureType.RETREATMENT,
        payment_status=PaymentStatus.PENDING,
        dentist_id=other_dentist.id,
    )
    make_procedure(value=500, procedure_date=date(2024, 2, 10))


def test_procedure_stats(march_data):
    stats = dashboard_service.procedure_stats(today=TODAY)

    assert stats["total_procedures"] == 3
    assert stats["monthly_procedures"] == 2
    assert stats["total_revenue"] == 2000
    assert stats["monthly_revenue"] == 1500
    assert stats["active_dentists"] == 2
    assert stats["pending_payments"] == 1
    assert stats["pending_payments_value"] == 500
    assert stats["total_treatments"] == 2
    assert stats["total_retreatments"] == 1
    assert stats["average_value"] == pytest.approx(2000 / 3)

    by_type = {row["type"]: row for row in stats["procedures_by_type"]}
    assert by_type["TREATMENT"]["count"] == 2
    assert by_type["TREATMENT"]["percentage"] == pytest.approx(200 / 3)

    by_complexity = {row["complexity"]: row["count"] for row in stats["procedures_by_complexity"]}
    assert by_complexity == {"UNKNOWN": 2, "HIGH": 1}

    count_cmp, revenue_cmp = stats["monthly_comparison"]
    assert count_cmp["percentage_change"] == pytest.approx(100.0)
    assert revenue_cmp["previous_month"] == 500
    assert revenue_cmp["percentage_change"] == pytest.approx(200.0)

    months = stats["revenue_by_month"]
    assert [m["month"] for m in months] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert months[-1]["revenue"] == 1500

    performance = stats["dentist_performance"]
    assert performance[0]["dentist_name"] == "Dr. Carlos Mendes"
    assert performance[0]["revenue"] == 1500


def test_stats_on_empty_database():
    stats = dashboard_service.procedure_stats(today=TODAY)
    assert stats["total_procedures"] == 0
    assert stats["average_value"] == 0
    assert stats["procedures_by_type"] == []
    assert all(c["percentage_change"] == 0 for c in stats["monthly_comparison"])


def test_pending_payments_and_invoices(march_data, make_procedure):
    pending = dashboard_service.pending_payments_by_dentist()
    assert pending == [{"dentist": "Dra. Amanda Oliveira", "count": 1, "total": 500.0}]

    invoiced = make_procedure(value=300, procedure_date=date(2024, 3, 12))
    services.create_invoice({"procedure_id": invoiced.id, "invoice_value": 300})

    not_invoiced = dashboard_service.pending_invoices_by_dentist()
    assert not_invoiced == [{"dentist": "Dr. Carlos Mendes", "count": 2, "total": 1500.0}]


def test_dentist_report_for_current_month(march_data):
    report = dashboard_service.dentist_procedure_report(period="month", today=TODAY)

    assert len(report) == 2
    totals = {row["name"]: row for row in report}
    carlos = totals["Dr. Carlos Mendes"]
    assert carlos["total_procedures"] == 1
    assert carlos["treatment_count"] == 1
    assert carlos["total_value"] == 1000
    assert carlos["average_value"] == 1000.0
    assert totals["Dra. Amanda Oliveira"]["retreatment_count"] == 1


def test_dentist_report_with_explicit_range(march_data, other_dentist):
    report = dashboard_service.dentist_procedure_report(
        start_date=date(2024, 2, 1), end_date=date(2024, 3, 31), dentist_id=other_dentist.id
    )
    assert [row["dentist_id"] for row in report] == [other_dentist.id]
    assert report[0]["average_value"] == 500.0


def test_resolve_period():
    assert dashboard_service.resolve_period("quarter", None, None, today=TODAY) == (date(2024, 1, 1), TODAY)
    assert dashboard_service.resolve_period("year", None, None, today=TODAY) == (date(2024, 1, 1), TODAY)
    with pytest.raises(ValueError):
        dashboard_service.resolve_period("decade", None, None, today=TODAY)


def test_dentist_report_lists_patient_names(march_data):
    report = dashboard_service.dentist_procedure_report(period="month", today=TODAY)

    for row in report:
        assert row["procedures"]
        assert {p["patient_name"] for p in row["procedures"]} == {"João Silva"}
        assert {p["dentist_name"] for p in row["procedures"]} == {row["name"]}

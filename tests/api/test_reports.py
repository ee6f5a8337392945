"""
LAR report tests
"""
import pytest

from conftest import add_defect, add_defect_data, add_inspection
from qc_inspection.services.report_service import dppm, lar_percent

CHART = "/api/reports/lar/chart"
DEFECTS = "/api/reports/lar/defects"
RANGE = {"year_from": "2026", "ww_from": "01", "year_to": "2026", "ww_to": "03"}


@pytest.fixture
async def lar_data(db_session):
    """
    Week 01: lots A-D (3 pass, 1 fail, 100 pcs each), 6 NG pieces.
    Week 03: lot E of another model, passed.
    Round 2 and SIV inspections must not count.
    """
    crack = await add_defect(db_session, "Crack")
    scratch = await add_defect(db_session, "Scratch")

    week_01 = {"fy": "2026", "ww": "01", "general_sampling_qty": 100}
    await add_inspection(db_session, lot_no="A", judgment=True, **week_01)
    lot_b = await add_inspection(db_session, lot_no="B", judgment=True, **week_01)
    await add_inspection(db_session, lot_no="C", judgment=True, **week_01)
    lot_d = await add_inspection(db_session, lot_no="D", judgment=False, **week_01)
    await add_defect_data(db_session, lot_d.inspection_no, crack, 2)
    await add_defect_data(db_session, lot_d.inspection_no, scratch, 3)
    await add_defect_data(db_session, lot_b.inspection_no, crack, 1)

    retest = await add_inspection(db_session, lot_no="F", round=2, judgment=False, **week_01)
    await add_defect_data(db_session, retest.inspection_no, crack, 10)
    await add_inspection(db_session, station="SIV", lot_no="A", judgment=False, **week_01)

    await add_inspection(
        db_session,
        lot_no="E",
        fy="2026",
        ww="03",
        model="Y5",
        version="A",
        judgment=True,
        general_sampling_qty=50,
    )


def test_rate_helpers():
    assert lar_percent(3, 4) == 75.0
    assert lar_percent(2, 3) == 66.67
    assert lar_percent(0, 0) is None
    assert dppm(6, 400) == 15000.0
    assert dppm(0, 50) == 0.0
    assert dppm(1, 0) is None


@pytest.mark.asyncio
async def test_lar_chart(client, lar_data):
    response = await client.get(CHART, params=RANGE)

    assert response.status_code == 200
    body = response.json()
    assert body["station"] == "OQA"
    assert body["rows"] == [
        {
            "fy": "2026", "ww": "01",
            "total_lot": 4, "total_pass_lot": 3, "total_fail_lot": 1,
            "total_inspection": 400, "total_ng": 6,
            "lar": 75.0, "dppm": 15000.0,
        },
        {
            "fy": "2026", "ww": "02",
            "total_lot": 0, "total_pass_lot": 0, "total_fail_lot": 0,
            "total_inspection": 0, "total_ng": 0,
            "lar": None, "dppm": None,
        },
        {
            "fy": "2026", "ww": "03",
            "total_lot": 1, "total_pass_lot": 1, "total_fail_lot": 0,
            "total_inspection": 50, "total_ng": 0,
            "lar": 100.0, "dppm": 0.0,
        },
    ]


@pytest.mark.asyncio
async def test_lar_chart_model_filter(client, lar_data):
    response = await client.get(CHART, params={**RANGE, "model": "X1 V2"})

    rows = response.json()["rows"]
    assert response.json()["model"] == "X1 V2"
    assert [row["total_lot"] for row in rows] == [4, 0, 0]


@pytest.mark.asyncio
async def test_lar_chart_open_ended_range(client, lar_data):
    response = await client.get(CHART, params={"year_from": "2026", "ww_from": "50"})

    rows = response.json()["rows"]
    assert [row["ww"] for row in rows] == ["50", "51", "52"]


@pytest.mark.asyncio
async def test_lar_defects(client, lar_data):
    response = await client.get(DEFECTS, params=RANGE)

    assert response.status_code == 200
    assert response.json()["rows"] == [
        {"fy": "2026", "ww": "01", "defect_name": "Crack", "ng_qty": 3},
        {"fy": "2026", "ww": "01", "defect_name": "Scratch", "ng_qty": 3},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params,code",
    [
        ({"year_from": "2026", "ww_from": "1"}, "INVALID_WORK_WEEK"),
        ({"year_from": "26", "ww_from": "01"}, "INVALID_FISCAL_YEAR"),
        ({"year_from": "2026", "ww_from": "10", "year_to": "2026", "ww_to": "05"}, "INVALID_RANGE"),
    ],
)
async def test_invalid_range(client, params, code):
    response = await client.get(CHART, params=params)

    assert response.status_code == 400
    assert response.json()["error"] == code


@pytest.mark.asyncio
@pytest.mark.filterwarnings("error::sqlalchemy.exc.SAWarning")
async def test_filter_options(client, lar_data):
    assert (await client.get("/api/reports/options/models")).json() == ["X1 V2", "Y5 A"]
    assert (await client.get("/api/reports/options/fiscal-years")).json() == ["2026"]

    response = await client.get("/api/reports/options/work-weeks", params={"fy": "2026"})
    assert response.json() == ["01", "03"]


@pytest.mark.asyncio
async def test_fiscal_calendar_lookups(client):
    response = await client.get("/api/fiscal-calendar/current", params={"date": "2025-08-10"})
    data = response.json()
    assert (data["fy"], data["ww"]) == ("2026", "07")
    assert data["label"] == "2026 Week 07"
    assert (data["week_start"], data["week_end"]) == ("2025-08-09", "2025-08-15")
    assert data["weeks_in_year"] == 52

    response = await client.get("/api/fiscal-calendar/week-range", params={"fy": 2026, "ww": 1})
    assert response.json() == {"fy": "2026", "ww": "01", "start": "2025-06-28", "end": "2025-07-04"}

    response = await client.get("/api/fiscal-calendar/year-month", params={"fyww": "202610"})
    assert response.json() == {"fyww": "202610", "year_month": "2508"}

    response = await client.get("/api/fiscal-calendar/year-month", params={"fyww": "2026"})
    assert response.status_code == 400

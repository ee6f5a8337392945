"""
Master data API tests: parts, defect types, sampling reasons, defect data
"""
import pytest

from conftest import add_defect, add_inspection


class TestParts:
    @pytest.mark.asyncio
    async def test_part_lifecycle(self, client):
        payload = {"part_no": " ITM-100 ", "product_family": "X1", "version": "V2", "customer": "ACME"}

        response = await client.post("/api/parts", json=payload)
        assert response.status_code == 201
        assert response.json()["part_no"] == "ITM-100"
        assert response.json()["is_active"] is True

        response = await client.post("/api/parts", json={"part_no": "ITM-100"})
        assert response.status_code == 409
        assert response.json()["error"] == "PART_EXISTS"

        response = await client.put("/api/parts/ITM-100", json={"customer": "Globex"})
        assert response.status_code == 200
        assert response.json()["customer"] == "Globex"
        assert response.json()["version"] == "V2"

        response = await client.delete("/api/parts/ITM-100")
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        # Deactivated parts stay readable
        assert (await client.get("/api/parts/ITM-100")).status_code == 200
        assert len((await client.get("/api/parts")).json()) == 1
        assert (await client.get("/api/parts", params={"active_only": True})).json() == []

    @pytest.mark.asyncio
    async def test_missing_part(self, client):
        response = await client.get("/api/parts/NOPE")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestDefects:
    @pytest.mark.asyncio
    async def test_defect_types(self, client):
        response = await client.post("/api/defects", json={"name": "Scratch"}, headers={"X-User-Id": "2"})
        assert response.status_code == 201
        scratch = response.json()
        assert scratch["created_by"] == 2

        await client.post("/api/defects", json={"name": "Crack"})

        response = await client.post("/api/defects", json={"name": "Crack"})
        assert response.status_code == 409

        names = [row["name"] for row in (await client.get("/api/defects")).json()]
        assert names == ["Crack", "Scratch"]

        response = await client.put(f"/api/defects/{scratch['id']}", json={"description": "Surface scratch"})
        assert response.json()["description"] == "Surface scratch"

        response = await client.delete(f"/api/defects/{scratch['id']}")
        assert response.json()["is_active"] is False

        names = [row["name"] for row in (await client.get("/api/defects", params={"active_only": True})).json()]
        assert names == ["Crack"]


class TestSamplingReasons:
    @pytest.mark.asyncio
    async def test_sampling_reasons(self, client):
        response = await client.post("/api/sampling-reasons", json={"name": "Normal sampling"})
        assert response.status_code == 201
        reason_id = response.json()["id"]

        response = await client.get(f"/api/sampling-reasons/{reason_id}")
        assert response.json()["name"] == "Normal sampling"

        response = await client.put(f"/api/sampling-reasons/{reason_id}", json={"name": "Re-sampling"})
        assert response.json()["name"] == "Re-sampling"

        await client.post("/api/sampling-reasons", json={"name": "Customer complaint"})
        response = await client.get("/api/sampling-reasons")
        assert response.status_code == 200
        assert [row["name"] for row in response.json()] == ["Re-sampling", "Customer complaint"]

        assert (await client.get("/api/sampling-reasons/999")).status_code == 404


class TestDefectData:
    @pytest.mark.asyncio
    async def test_record_defect(self, client, db_session):
        record = await add_inspection(db_session, station="OQA")
        crack = await add_defect(db_session, "Crack")

        response = await client.post(
            "/api/defectdata",
            json={"inspection_no": record.inspection_no, "defect_id": crack.id, "ng_qty": 3, "tray_no": "T1"},
            headers={"X-User-Id": "5"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["station"] == "OQA"
        assert data["defect_name"] == "Crack"
        assert data["ng_qty"] == 3
        assert data["created_by"] == 5
        assert data["defect_date"] is not None

        response = await client.get("/api/defectdata", params={"inspection_no": record.inspection_no})
        assert [row["id"] for row in response.json()] == [data["id"]]

        response = await client.delete(f"/api/defectdata/{data['id']}")
        assert response.status_code == 204
        response = await client.get("/api/defectdata", params={"inspection_no": record.inspection_no})
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_unknown_inspection_or_defect(self, client, db_session):
        record = await add_inspection(db_session)
        crack = await add_defect(db_session, "Crack")

        response = await client.post(
            "/api/defectdata", json={"inspection_no": "OQA000000-000000", "defect_id": crack.id}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "INSPECTION_NOT_FOUND"

        response = await client.post(
            "/api/defectdata", json={"inspection_no": record.inspection_no, "defect_id": 999}
        )
        assert response.status_code == 404

        assert (await client.delete("/api/defectdata/999")).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/parts", "/api/defects", "/api/sampling-reasons"])
async def test_empty_master_lists(client, path):
    response = await client.get(path)

    assert response.status_code == 200
    assert response.json() == []

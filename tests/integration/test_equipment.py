"""Integration tests for equipment, the temperature journal and xlsx exports."""

from __future__ import annotations

import io

from openpyxl import load_workbook

from horeca.services.export import XLSX_MIME


async def _create_fridge(client, **extra) -> dict:
    resp = await client.post("/api/equipment", json={
        "type": "Холодильник", "zone": "Кухня", "serialNumber": "SN-1", **extra,
    })
    assert resp.status_code == 201
    return resp.json()["equipment"]


# ── Equipment ─────────────────────────────────────────────

async def test_point_manager_equipment_crud(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    eq = await _create_fridge(client)
    assert eq["pointId"] == org.point.id
    assert eq["status"] == "active"

    resp = await client.put(f"/api/equipment/{eq['id']}", json={"zone": "Бар", "status": "maintenance"})
    assert resp.status_code == 200
    updated = resp.json()["equipment"]
    assert updated["zone"] == "Бар"
    assert updated["serialNumber"] == "SN-1"

    listed = (await client.get("/api/equipment")).json()["equipment"]
    assert [e["id"] for e in listed] == [eq["id"]]

    assert (await client.delete(f"/api/equipment/{eq['id']}")).json() == {"ok": True}
    assert (await client.get("/api/equipment")).json()["equipment"] == []


async def test_equipment_rejects_unknown_status(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    resp = await client.post("/api/equipment", json={"type": "Fridge", "zone": "K", "status": "broken"})
    assert resp.status_code == 400


async def test_employee_cannot_manage_equipment(login, org):
    client = login(org.tokens["EMPLOYEE"])
    assert (await client.get("/api/equipment")).status_code == 403


async def test_equipment_scoped_to_tenant_and_point(login, org, other_org):
    owner = login(org.tokens["ORGANIZATION_OWNER"])
    tenant_wide = await _create_fridge(owner)
    assert tenant_wide["pointId"] is None

    point_manager = login(org.tokens["POINT_MANAGER"])
    assert (await point_manager.get("/api/equipment")).json()["equipment"] == []
    resp = await point_manager.put(f"/api/equipment/{tenant_wide['id']}", json={"zone": "X"})
    assert resp.status_code == 404

    other = login(other_org.token)
    assert (await other.get("/api/equipment")).json()["equipment"] == []
    assert (await other.delete(f"/api/equipment/{tenant_wide['id']}")).status_code == 404


# ── Temperature journal ───────────────────────────────────

async def test_temperature_reading_upserts_per_period(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    eq = await _create_fridge(client)

    body = {"equipmentId": eq["id"], "temperature": 4.5, "date": "2024-03-01", "period": "morning"}
    resp = await client.post("/api/temperature-records", json=body)
    assert resp.status_code == 201
    first = resp.json()["temperatureRecord"]
    assert first["time"] == "08:00"
    assert first["recordedBy"] == "Main Street"
    assert first["equipment"]["type"] == "Холодильник"

    body["temperature"] = 3.0
    again = (await client.post("/api/temperature-records", json=body)).json()["temperatureRecord"]
    assert again["id"] == first["id"]
    assert again["temperature"] == 3.0

    await client.post("/api/temperature-records", json={**body, "period": "evening", "temperature": 5.0})

    records = (await client.get("/api/temperature-records", params={"date": "2024-03-01"})).json()
    assert sorted(r["period"] for r in records["temperatureRecords"]) == ["evening", "morning"]
    filtered = await client.get("/api/temperature-records", params={"equipmentId": "missing"})
    assert filtered.json()["temperatureRecords"] == []


async def test_temperature_for_foreign_equipment_is_404(login, org, other_org):
    other = login(other_org.token)
    foreign = await _create_fridge(other)

    client = login(org.tokens["POINT_MANAGER"])
    resp = await client.post("/api/temperature-records", json={
        "equipmentId": foreign["id"], "temperature": 4.0, "date": "2024-03-01",
    })
    assert resp.status_code == 404
    assert resp.json() == {"error": "Equipment not found or access denied"}


async def test_deleting_equipment_removes_readings(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    eq = await _create_fridge(client)
    await client.post("/api/temperature-records", json={"equipmentId": eq["id"], "temperature": 4.0, "date": "2024-03-01"})

    await client.delete(f"/api/equipment/{eq['id']}")
    assert (await client.get("/api/temperature-records")).json()["temperatureRecords"] == []


# ── Exports ───────────────────────────────────────────────

async def test_health_journal_export(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    await client.post("/api/employee-status", json={
        "employeeId": org.employee.id, "date": "2024-01-15", "status": "sick",
    })

    resp = await client.post("/api/export/excel", json={"startDate": "2024-01-15", "endDate": "2024-01-16"})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX_MIME
    assert "attachment" in resp.headers["content-disposition"]

    ws = load_workbook(io.BytesIO(resp.content)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0][4:] == ("15.01", "16.01")
    cook = next(r for r in rows[1:] if r[1] == "Anna Cook")
    assert cook[2] == "Cook"
    assert cook[4] == "б/л"


async def test_export_rejects_bad_ranges(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    resp = await client.post("/api/export/excel", json={"startDate": "15.01.2024", "endDate": "2024-01-16"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"
    assert [i["field"] for i in resp.json()["issues"]] == ["startDate"]
    resp = await client.post("/api/export/excel", json={"startDate": "2024-02-01", "endDate": "2024-01-01"})
    assert resp.status_code == 400
    resp = await client.post("/api/export/excel", json={"startDate": "2023-01-01", "endDate": "2024-12-31"})
    assert resp.status_code == 400


async def test_temperature_export(login, org):
    client = login(org.tokens["POINT_MANAGER"])
    eq = await _create_fridge(client)
    await client.post("/api/temperature-records", json={
        "equipmentId": eq["id"], "temperature": 2.5, "date": "2024-03-01", "period": "evening",
    })

    resp = await client.post("/api/export/temperature-excel", json={"startDate": "2024-03-01", "endDate": "2024-03-31"})
    assert resp.status_code == 200
    rows = list(load_workbook(io.BytesIO(resp.content)).active.iter_rows(values_only=True))
    assert rows[1][:6] == (1, "01.03.2024", "20:00", "Холодильник", "Кухня", 2.5)


async def test_manager_without_point_cannot_export_temperatures(login, org):
    client = login(org.tokens["MANAGER"])
    resp = await client.post("/api/export/temperature-excel", json={"startDate": "2024-03-01", "endDate": "2024-03-02"})
    assert resp.status_code == 400

    await client.post("/api/switch-point", json={"pointId": org.point.id})
    resp = await client.post("/api/export/temperature-excel", json={"startDate": "2024-03-01", "endDate": "2024-03-02"})
    assert resp.status_code == 200

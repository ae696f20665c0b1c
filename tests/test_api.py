import csv
import io

import pytest
from httpx import ASGITransport, AsyncClient

from nbadfs.api import create_app

from tests.sample_pools import slate_pool, ten_player_pool


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


def _players(records):
    return [record.model_dump(mode="json", exclude={"leverage_score"}) for record in records]


@pytest.mark.anyio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_optimize_returns_lineups_and_exposure(client):
    body = {
        "slate_id": "main",
        "players": _players(slate_pool()),
        "settings": {"mode": "gpp", "num_lineups": 3, "min_salary": 45000, "randomness": 5, "seed": 1},
    }
    resp = await client.post("/optimize", json=body)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["slate_id"] == "main"
    assert payload["notice"] is None
    assert len(payload["lineups"]) == 3
    lineup = payload["lineups"][0]
    assert [slot["slot"] for slot in lineup["slots"]] == ["PG", "SG", "SF", "PF", "C", "G", "F", "UTIL"]
    assert lineup["total_salary"] <= 50000
    assert payload["filter_summary"]["kept_players"] == 40
    assert sum(entry["count"] for entry in payload["exposure"]) == 24


@pytest.mark.anyio
async def test_optimize_rejects_lock_exclude_overlap(client):
    body = {
        "players": _players(slate_pool()),
        "settings": {"locked_player_ids": ["p01"], "excluded_player_ids": ["p01"]},
    }
    resp = await client.post("/optimize", json=body)
    assert resp.status_code == 422
    assert "locked and excluded" in resp.text


@pytest.mark.anyio
async def test_optimize_reports_notice_instead_of_error(client):
    body = {"players": _players(ten_player_pool()[:6])}
    resp = await client.post("/optimize", json=body)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["lineups"] == []
    assert payload["notice"]["kind"] == "empty_pool"
    assert payload["notice"]["requested"] == 1


@pytest.mark.anyio
async def test_export_csv(client):
    body = {"slate_id": "early", "players": _players(slate_pool()), "settings": {"num_lineups": 2, "min_salary": 45000}}
    resp = await client.post("/optimize/export.csv", json=body)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="early.csv"' in resp.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["EntryName", "PG", "SG", "SF", "PF", "C", "G", "F", "UTIL"]
    assert [row[0] for row in rows[1:]] == ["L001", "L002"]


@pytest.mark.anyio
async def test_validate_bare_players(client):
    players = {record.player_id: record for record in ten_player_pool()}
    chosen = ["t02", "t03", "t04", "t05", "t06", "t07", "t08", "t09"]
    body = {
        "players": [{"player": player} for player in _players(players[pid] for pid in chosen)],
        "min_salary": 45000,
    }
    resp = await client.post("/validate", json=body)
    assert resp.status_code == 200
    report = resp.json()
    assert report["valid"] is True
    assert report["total_salary"] == 46500
    assert len(report["assignments"]) == 8


@pytest.mark.anyio
async def test_validate_explicit_slots_reports_violations(client):
    records = ten_player_pool()
    entries = [{"slot": "C", "player": player} for player in _players(records[:8])]
    resp = await client.post("/validate", json={"players": entries})
    assert resp.status_code == 200
    report = resp.json()
    assert report["valid"] is False
    codes = {violation["code"] for violation in report["violations"]}
    assert {"slot_mismatch", "salary_over_cap"} <= codes

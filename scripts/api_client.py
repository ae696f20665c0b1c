"""Lightweight REST client for the nbadfs API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx

from nbadfs.ingest import load_records_from_csv


def build_settings(raw: str) -> dict:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid settings JSON: {exc}") from exc


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the nbadfs REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("players", type=Path, nargs="?", help="Player pool CSV")
    parser.add_argument("--mode", choices=["cash", "gpp"], default="cash")
    parser.add_argument("--lineups", type=int, default=1, help="Number of lineups to request")
    parser.add_argument("--settings", default="", help="Extra settings as a JSON object")
    parser.add_argument("--slate-id", default=None, help="Slate identifier echoed in the response")
    parser.add_argument("--validate", action="store_true", help="Validate the first eight players instead")
    parser.add_argument("--export-path", type=Path, help="Save the contest CSV for the built lineups")
    parser.add_argument("--health", action="store_true", help="Check the API health endpoint and exit")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url, timeout=120.0) as client:
        if args.health:
            resp = client.get("/health")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.players is None:
            raise SystemExit("a players CSV is required unless using --health")

        records, report = load_records_from_csv(args.players)
        print(f"Loaded {report.loaded}/{report.total_rows} players")
        players = [record.model_dump(mode="json", exclude={"leverage_score"}) for record in records]
        settings = {"mode": args.mode, "num_lineups": args.lineups, **build_settings(args.settings)}

        if args.validate:
            body = {"players": [{"player": player} for player in players[:8]], "settings": settings}
            resp = client.post("/validate", json=body)
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        body = {"slate_id": args.slate_id, "players": players, "settings": settings}
        resp = client.post("/optimize", json=body)
        if resp.status_code == 422:
            raise SystemExit(f"Invalid request: {json.dumps(resp.json()['detail'], indent=2)}")
        resp.raise_for_status()
        payload = resp.json()
        print(f"Received {len(payload['lineups'])} lineups in {payload['elapsed']:.2f}s")
        if payload.get("notice"):
            print("Notice:", json.dumps(payload["notice"], indent=2))
        if payload["lineups"]:
            print(json.dumps(payload["lineups"][0], indent=2))

        if args.export_path:
            resp = client.post("/optimize/export.csv", json=body)
            resp.raise_for_status()
            args.export_path.write_text(resp.text)
            print(f"CSV export saved to {args.export_path}")


if __name__ == "__main__":
    main()

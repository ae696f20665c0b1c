"""Deterministic player pools shared by the engine tests."""

from __future__ import annotations

from nbadfs.models import PlayerRecord


GAMES = [("BOS", "NYK"), ("LAL", "DEN"), ("MIA", "CHI"), ("PHX", "DAL"), ("GSW", "SAC")]
ROLES = ["PG", "SG", "SF/PF", "C"]


def _opponents() -> list[tuple[str, str]]:
    teams: list[tuple[str, str]] = []
    for away, home in GAMES:
        teams.append((away, home))
        teams.append((home, away))
    return teams


def slate_pool() -> list[PlayerRecord]:
    """Forty players: four per team across five games, every metric populated."""

    records: list[PlayerRecord] = []
    for ti, (team, opponent) in enumerate(_opponents()):
        for ri, role in enumerate(ROLES):
            idx = ti * len(ROLES) + ri
            salary = 3500 + ((ti * 37 + ri * 53) % 60) * 100
            projection = round(salary / 1000 * 5.0 + ((idx * 7) % 9) - 4, 1)
            records.append(
                PlayerRecord(
                    player_id=f"p{idx + 1:02d}",
                    name=f"{team} {role.replace('/', '')} {idx + 1}",
                    team=team,
                    opponent=opponent,
                    positions=role,
                    salary=salary,
                    projected_points=projection,
                    floor=round(projection * 0.8, 1),
                    ceiling=round(projection * 1.35, 1),
                    volatility=round(0.10 + (idx % 5) * 0.04, 2),
                    boom_probability=float(10 + (idx * 11) % 35),
                    bust_probability=float(5 + (idx * 7) % 30),
                    ownership=float(2 + (idx * 13) % 38),
                    usage_rate=float(16 + (idx * 3) % 14),
                    rest_days=idx % 3,
                    projected_minutes=float(22 + (idx * 5) % 16),
                    vegas_spread=float((idx * 5) % 21 - 10),
                )
            )
    return records


def ten_player_pool() -> list[PlayerRecord]:
    """Ten players over six teams and three games; only a few 8-subsets fit."""

    rows = [
        ("t01", "BOS", "NYK", "PG", 9000, 48.0),
        ("t02", "NYK", "BOS", "SG", 8000, 42.0),
        ("t03", "LAL", "DEN", "SF", 7000, 37.0),
        ("t04", "DEN", "LAL", "PF", 6500, 33.0),
        ("t05", "MIA", "CHI", "C", 6000, 31.0),
        ("t06", "CHI", "MIA", "PG/SG", 5500, 28.0),
        ("t07", "BOS", "NYK", "SF/PF", 5000, 25.0),
        ("t08", "NYK", "BOS", "C/PF", 4500, 22.0),
        ("t09", "LAL", "DEN", "SG", 4000, 19.0),
        ("t10", "MIA", "CHI", "PF", 3500, 16.0),
    ]
    return [
        PlayerRecord(
            player_id=pid,
            name=f"Player {pid}",
            team=team,
            opponent=opponent,
            positions=positions,
            salary=salary,
            projected_points=projection,
        )
        for pid, team, opponent, positions, salary, projection in rows
    ]


def by_id(records: list[PlayerRecord]) -> dict[str, PlayerRecord]:
    return {record.player_id: record for record in records}


def centers(records: list[PlayerRecord]) -> list[PlayerRecord]:
    return [record for record in records if record.positions == ["C"]]

"""Helpers to load player-pool CSVs and emit canonical records."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from nbadfs.config import get_rules
from nbadfs.models import PlayerRecord


logger = logging.getLogger(__name__)

NBA_TEAM_ALIAS_GROUPS: dict[str, list[str]] = {
    "ATL": ["ATL", "ATLANTA", "ATLANTA HAWKS", "HAWKS"],
    "BKN": ["BKN", "BRK", "BROOKLYN", "BROOKLYN NETS", "NETS"],
    "BOS": ["BOS", "BOSTON", "BOSTON CELTICS", "CELTICS"],
    "CHA": ["CHA", "CHO", "CHARLOTTE", "CHARLOTTE HORNETS", "HORNETS"],
    "CHI": ["CHI", "CHICAGO", "CHICAGO BULLS", "BULLS"],
    "CLE": ["CLE", "CLEVELAND", "CLEVELAND CAVALIERS", "CAVALIERS", "CAVS"],
    "DAL": ["DAL", "DALLAS", "DALLAS MAVERICKS", "MAVERICKS", "MAVS"],
    "DEN": ["DEN", "DENVER", "DENVER NUGGETS", "NUGGETS"],
    "DET": ["DET", "DETROIT", "DETROIT PISTONS", "PISTONS"],
    "GSW": ["GSW", "GS", "GOLDEN STATE", "GOLDEN STATE WARRIORS", "WARRIORS"],
    "HOU": ["HOU", "HOUSTON", "HOUSTON ROCKETS", "ROCKETS"],
    "IND": ["IND", "INDIANA", "INDIANA PACERS", "PACERS"],
    "LAC": ["LAC", "LA CLIPPERS", "LOS ANGELES CLIPPERS", "CLIPPERS"],
    "LAL": ["LAL", "LA LAKERS", "LOS ANGELES LAKERS", "LAKERS"],
    "MEM": ["MEM", "MEMPHIS", "MEMPHIS GRIZZLIES", "GRIZZLIES"],
    "MIA": ["MIA", "MIAMI", "MIAMI HEAT", "HEAT"],
    "MIL": ["MIL", "MILWAUKEE", "MILWAUKEE BUCKS", "BUCKS"],
    "MIN": ["MIN", "MINNESOTA", "MINNESOTA TIMBERWOLVES", "TIMBERWOLVES", "WOLVES"],
    "NOP": ["NOP", "NO", "NOR", "NEW ORLEANS", "NEW ORLEANS PELICANS", "PELICANS"],
    "NYK": ["NYK", "NY", "NEW YORK", "NEW YORK KNICKS", "KNICKS"],
    "OKC": ["OKC", "OKLAHOMA CITY", "OKLAHOMA CITY THUNDER", "THUNDER"],
    "ORL": ["ORL", "ORLANDO", "ORLANDO MAGIC", "MAGIC"],
    "PHI": ["PHI", "PHILADELPHIA", "PHILADELPHIA 76ERS", "76ERS", "SIXERS"],
    "PHX": ["PHX", "PHO", "PHOENIX", "PHOENIX SUNS", "SUNS"],
    "POR": ["POR", "PORTLAND", "PORTLAND TRAIL BLAZERS", "TRAIL BLAZERS", "BLAZERS"],
    "SAC": ["SAC", "SACRAMENTO", "SACRAMENTO KINGS", "KINGS"],
    "SAS": ["SAS", "SA", "SAN ANTONIO", "SAN ANTONIO SPURS", "SPURS"],
    "TOR": ["TOR", "TORONTO", "TORONTO RAPTORS", "RAPTORS"],
    "UTA": ["UTA", "UTAH", "UTAH JAZZ", "JAZZ"],
    "WAS": ["WAS", "WSH", "WASHINGTON", "WASHINGTON WIZARDS", "WIZARDS"],
}


def _team_token(value: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", value.upper())


def _build_alias_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for abbr, variants in NBA_TEAM_ALIAS_GROUPS.items():
        for variant in variants:
            key = _team_token(variant)
            if key:
                lookup.setdefault(key, abbr)
    return lookup


TEAM_ALIAS_LOOKUP = _build_alias_lookup()

# Numeric PlayerRecord fields that may be mapped from a column.
NUMERIC_FIELDS = (
    "floor",
    "ceiling",
    "volatility",
    "boom_probability",
    "bust_probability",
    "ownership",
    "usage_rate",
    "rest_days",
    "projected_minutes",
    "vegas_spread",
)


class PlayerRow(BaseModel):
    """One CSV row, still as raw strings, keyed by canonical field names."""

    raw_id: Optional[str] = None
    raw_name: str
    raw_team: str
    raw_opponent: Optional[str] = None
    raw_game: Optional[str] = None
    raw_position: Optional[str] = None
    raw_salary: str
    raw_projection: str
    raw_injury_status: Optional[str] = None
    metrics: Dict[str, str] = {}

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "PlayerRow":
        def extract(spec: Optional[str | Sequence[str]], *, default: Optional[str] = None) -> Optional[str]:
            if spec is None:
                return default
            if isinstance(spec, str):
                value = row.get(spec)
                return value.strip() if value is not None else default
            parts = [row.get(col, "").strip() for col in spec if row.get(col)]
            return " ".join(parts) if parts else default

        def parse_spec(key: str, default_key: Optional[str] = None) -> Optional[str | Sequence[str]]:
            spec = mapping.get(key)
            if spec is None and default_key:
                spec = default_key
            if spec is None:
                return None
            if isinstance(spec, str) and "|" in spec:
                return tuple(part.strip() for part in spec.split("|"))
            return spec

        metrics: Dict[str, str] = {}
        for name in NUMERIC_FIELDS:
            value = extract(parse_spec(name))
            if value:
                metrics[name] = value

        return cls(
            raw_id=extract(parse_spec("player_id")),
            raw_name=extract(parse_spec("name", "name"), default="") or "",
            raw_team=extract(parse_spec("team", "team"), default="") or "",
            raw_opponent=extract(parse_spec("opponent")),
            raw_game=extract(parse_spec("game")),
            raw_position=extract(parse_spec("position")),
            raw_salary=extract(parse_spec("salary", "salary"), default="0") or "0",
            raw_projection=extract(parse_spec("projection", "projection"), default="0") or "0",
            raw_injury_status=extract(parse_spec("injury_status")),
            metrics=metrics,
        )


DEFAULT_PLAYER_MAPPING = {
    "player_id": "player_id",
    "name": "name",
    "team": "team",
    "opponent": "opponent",
    "position": "position",
    "salary": "salary",
    "projection": "projection",
    "injury_status": "injury_status",
    **{name: name for name in NUMERIC_FIELDS},
}

# DraftKings salary export columns.
DK_SALARIES_MAPPING = {
    "player_id": "ID",
    "name": "Name",
    "team": "TeamAbbrev",
    "game": "Game Info",
    "position": "Position",
    "salary": "Salary",
    "projection": "AvgPointsPerGame",
}


def canonical_team(team: str) -> str:
    token = _team_token(team)
    if not token:
        return team.upper()
    return TEAM_ALIAS_LOOKUP.get(token, team.strip().upper())


_GAME_INFO = re.compile(r"^\s*([A-Za-z]+)\s*@\s*([A-Za-z]+)")


def opponent_from_game(game: Optional[str], team: str) -> Optional[str]:
    """Resolve the opponent from a ``"AWAY@HOME 07:30PM ET"`` game column."""

    if not game:
        return None
    match = _GAME_INFO.match(game)
    if not match:
        return None
    away, home = canonical_team(match.group(1)), canonical_team(match.group(2))
    if team == away:
        return home
    if team == home:
        return away
    return None


def load_player_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
    base: Mapping[str, str] = DEFAULT_PLAYER_MAPPING,
) -> List[PlayerRow]:
    """Read raw rows; entries in ``mapping`` override the ``base`` column names."""

    mapping = {**base, **(mapping or {})}
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        rows = [PlayerRow.from_mapping(row, mapping) for row in reader]
    return rows


def _parse_salary(raw_salary: str, *, default: int | None = None) -> int:
    digits = re.sub(r"[^0-9]", "", raw_salary)
    if not digits:
        if default is not None:
            return default
        raise ValueError(f"salary '{raw_salary}' has no digits")
    return int(digits)


def _parse_projection(raw_projection: str) -> float:
    text = raw_projection.strip()
    if not text:
        return 0.0
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"projection '{raw_projection}' is not numeric") from None
    return max(0.0, value)


def _parse_metric(name: str, raw: str) -> Optional[float | int]:
    text = raw.strip().rstrip("%")
    if not text or text in {"-", "N/A", "NA"}:
        return None
    try:
        value = float(text)
    except ValueError:
        logger.debug("Ignoring non-numeric %s value %r", name, raw)
        return None
    if name == "rest_days":
        return int(value)
    return value


def _canonical_positions(position: Optional[str]) -> List[str]:
    if not position:
        return []
    tokens = [token.strip().upper() for token in re.split(r"[/,\s]+", position) if token.strip()]
    valid = get_rules("DK", "NBA").known_positions
    normalized = [token for token in tokens if token in valid]
    return normalized or tokens


def row_to_record(row: PlayerRow) -> PlayerRecord:
    team = canonical_team(row.raw_team) if row.raw_team else ""
    opponent = canonical_team(row.raw_opponent) if row.raw_opponent else opponent_from_game(row.raw_game, team)
    metrics = {name: _parse_metric(name, raw) for name, raw in row.metrics.items()}
    metadata: dict[str, object] = {}
    if row.raw_position is not None:
        metadata["raw_position"] = row.raw_position
    if row.raw_game:
        metadata["game_info"] = row.raw_game
    return PlayerRecord(
        player_id=row.raw_id or row.raw_name,
        name=row.raw_name,
        team=team,
        opponent=opponent,
        positions=_canonical_positions(row.raw_position),
        salary=_parse_salary(row.raw_salary),
        projected_points=_parse_projection(row.raw_projection),
        injury_status=(row.raw_injury_status or None),
        metadata=metadata,
        **{name: value for name, value in metrics.items() if value is not None},
    )


@dataclass(frozen=True)
class LoadReport:
    total_rows: int
    loaded: int
    rejected_rows: List[str]


def rows_to_records(rows: Sequence[PlayerRow]) -> Tuple[List[PlayerRecord], LoadReport]:
    """Convert rows, skipping (and reporting) rows that fail model validation."""

    records: List[PlayerRecord] = []
    rejected: List[str] = []
    for row in rows:
        try:
            records.append(row_to_record(row))
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping player row %r: %s", row.raw_name or row.raw_id, exc)
            rejected.append(row.raw_name or row.raw_id or "?")
    report = LoadReport(total_rows=len(rows), loaded=len(records), rejected_rows=rejected)
    return records, report


def load_records_from_csv(
    path: Path,
    *,
    mapping: Mapping[str, str] | None = None,
) -> Tuple[List[PlayerRecord], LoadReport]:
    return rows_to_records(load_player_csv(path, mapping=mapping))


_NAME_SUFFIX_TOKENS = {"jr", "sr", "ii", "iii", "iv", "v"}


def _normalize_name(name: str) -> str:
    cleaned = re.sub(r"[^a-z0-9]+", " ", name.lower())
    return "".join(tok for tok in cleaned.split() if tok not in _NAME_SUFFIX_TOKENS)


def _record_key(name: str, team: str) -> str:
    return f"{_normalize_name(name)}::{team}"


@dataclass(frozen=True)
class MergeReport:
    total_players: int
    matched_players: int
    players_missing_projection: List[str]
    unmatched_projection_rows: List[str]


def merge_salaries_and_projections(
    *,
    salaries_path: Path,
    projections_path: Path,
    salaries_mapping: Optional[Mapping[str, str]] = None,
    projection_mapping: Optional[Mapping[str, str]] = None,
) -> Tuple[List[PlayerRecord], MergeReport]:
    """Overlay projection metrics onto a site salary file.

    Rows are matched on normalized name plus team. Salary file players
    without a projection row are dropped; projection rows without a
    salary player are reported.
    """

    salary_rows = load_player_csv(salaries_path, mapping=salaries_mapping, base=DK_SALARIES_MAPPING)
    projection_rows = load_player_csv(projections_path, mapping=projection_mapping)

    overlay: dict[str, PlayerRow] = {}
    for row in projection_rows:
        overlay.setdefault(_record_key(row.raw_name, canonical_team(row.raw_team)), row)

    records: List[PlayerRecord] = []
    matched: set[str] = set()
    missing: List[str] = []
    for row in salary_rows:
        key = _record_key(row.raw_name, canonical_team(row.raw_team))
        extra = overlay.get(key)
        if extra is None:
            missing.append(row.raw_name)
            continue
        merged = row.model_copy(
            update={
                "raw_projection": extra.raw_projection,
                "raw_opponent": row.raw_opponent or extra.raw_opponent,
                "raw_injury_status": extra.raw_injury_status or row.raw_injury_status,
                "metrics": {**row.metrics, **extra.metrics},
            }
        )
        try:
            records.append(row_to_record(merged))
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping merged player %r: %s", row.raw_name, exc)
            continue
        matched.add(key)

    unmatched = [
        row.raw_name
        for key, row in overlay.items()
        if key not in matched
    ]
    report = MergeReport(
        total_players=len(salary_rows),
        matched_players=len(records),
        players_missing_projection=missing,
        unmatched_projection_rows=unmatched,
    )
    logger.info(
        "Merged %s/%s salary players with projections (%s projection rows unmatched)",
        report.matched_players,
        report.total_players,
        len(unmatched),
    )
    return records, report

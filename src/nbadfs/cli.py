"""Command-line interface for building NBA lineups from a player pool CSV."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from nbadfs.config import GameStack, Mode, OptimizationSettings, TeamStack
from nbadfs.config_loader import MappingProfile
from nbadfs.ingest import load_records_from_csv, merge_salaries_and_projections
from nbadfs.optimizer import OptimizationResult, optimize
from nbadfs.pool import export_lineup_summary, export_lineups_to_csv


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate NBA DFS lineups from a player pool")
    parser.add_argument("projections", type=Path, help="Path to player projections CSV")
    parser.add_argument(
        "--salaries",
        type=Path,
        default=None,
        help="Optional site salary export to merge projections onto",
    )
    parser.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for projection CSV columns (e.g., projection=FPTS)",
    )
    parser.add_argument(
        "--salaries-column",
        action="append",
        default=[],
        help="Mapping for salary CSV columns (e.g., name=Name)",
    )
    parser.add_argument("--load-profile", type=Path, help="Load column mapping JSON", default=None)
    parser.add_argument("--save-profile", type=Path, help="Save column mapping JSON", default=None)

    parser.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.CASH.value)
    parser.add_argument(
        "--preset",
        action="store_true",
        help="Start from the production thresholds of the chosen mode",
    )
    parser.add_argument("--lineups", type=int, default=1, help="Number of lineups to build")
    parser.add_argument("--min-salary", type=int, default=None, help="Minimum total salary")
    parser.add_argument("--lock", nargs="*", default=None, help="Player IDs to force into every lineup")
    parser.add_argument("--exclude", nargs="*", default=None, help="Player IDs to remove from consideration")
    parser.add_argument(
        "--strategy",
        choices=["max_leverage", "balanced", "contrarian"],
        default=None,
        help="GPP strategy",
    )
    parser.add_argument("--randomness", type=float, default=None, help="GPP utility jitter in percent (0-30)")
    parser.add_argument("--max-chalk", type=int, default=None, help="Maximum chalk players per GPP lineup")
    parser.add_argument("--max-exposure-chalk", type=float, default=None, help="Chalk exposure cap (percent)")
    parser.add_argument("--max-exposure-mid", type=float, default=None, help="Mid-owned exposure cap (percent)")
    parser.add_argument(
        "--max-exposure-leverage",
        type=float,
        default=None,
        help="Low-owned exposure cap (percent)",
    )
    parser.add_argument("--min-exposure", type=float, default=None, help="Minimum exposure for used players (percent)")
    parser.add_argument("--max-team", type=int, default=None, help="Maximum players from one team")
    parser.add_argument("--min-teams", type=int, default=None, help="Minimum distinct teams per lineup")
    parser.add_argument("--min-games", type=int, default=None, help="Minimum distinct games per lineup")
    parser.add_argument(
        "--team-stack",
        action="append",
        default=[],
        help="Team stack as TEAM:COUNT (e.g., BOS:2)",
    )
    parser.add_argument(
        "--game-stack",
        action="append",
        default=[],
        help="Game stack as GAME:COUNT (e.g., LAL@BOS:3)",
    )
    parser.add_argument(
        "--include-injured",
        action="store_true",
        help="Keep questionable/doubtful/out players in the pool",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible jitter")
    parser.add_argument("--jobs", type=int, default=None, help="Worker processes for lineup waves")

    parser.add_argument("--output", type=Path, default=Path("lineups.csv"), help="Contest upload CSV path")
    parser.add_argument("--summary", type=Path, default=None, help="Optional lineup summary CSV path")
    parser.add_argument("--report", type=Path, default=None, help="Optional path to write run report JSON")
    parser.add_argument("--verbose", action="store_true", help="Log optimizer progress")
    return parser.parse_args(argv)


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _parse_stack(entry: str) -> tuple[str, int]:
    key, sep, count = entry.rpartition(":")
    if not sep or not key:
        raise ValueError(f"Invalid stack entry '{entry}', expected NAME:COUNT")
    return key.strip(), int(count)


def _settings_from_args(args: argparse.Namespace) -> OptimizationSettings:
    overrides: dict[str, Any] = {
        "num_lineups": args.lineups,
        "min_salary": args.min_salary,
        "locked_player_ids": args.lock or [],
        "excluded_player_ids": args.exclude or [],
        "gpp_strategy": args.strategy,
        "randomness": args.randomness,
        "max_chalk_players": args.max_chalk,
        "max_exposure_chalk": args.max_exposure_chalk,
        "max_exposure_mid": args.max_exposure_mid,
        "max_exposure_leverage": args.max_exposure_leverage,
        "min_exposure": args.min_exposure,
        "max_players_per_team": args.max_team,
        "min_teams": args.min_teams,
        "min_games": args.min_games,
        "seed": args.seed,
        "parallel_jobs": args.jobs,
    }
    values = {key: value for key, value in overrides.items() if value is not None}
    if args.include_injured:
        values["filter_injured"] = False
    if args.team_stack:
        values["team_stacks"] = [
            TeamStack(team=team, min_players=count) for team, count in map(_parse_stack, args.team_stack)
        ]
    if args.game_stack:
        values["game_stacks"] = [
            GameStack(game=game, min_players=count) for game, count in map(_parse_stack, args.game_stack)
        ]
    if args.preset:
        return OptimizationSettings.preset(args.mode, **values)
    return OptimizationSettings(mode=args.mode, **values)


def _print_result(result: OptimizationResult) -> None:
    print(f"Built {len(result.lineups)} lineup(s) in {result.elapsed:.2f}s")
    for lineup in result.lineups:
        print(
            f"{lineup.lineup_id}: ${lineup.total_salary} "
            f"proj {lineup.projected_points:.2f} own {lineup.avg_ownership:.1f}% "
            f"teams {lineup.team_count} games {lineup.game_count}"
        )
    if result.exposure:
        print("Exposure:")
        for entry in result.exposure[:15]:
            print(f"  {entry.name:<24} {entry.team:<4} {entry.count:>3}  {entry.exposure:5.1f}%  {entry.tier}")
    for gap in result.exposure_gaps:
        print(f"Minimum exposure missed for {gap.name}: {gap.achieved}/{gap.required}")
    if result.notice is not None:
        print(f"Lineup generation stopped early ({result.notice.kind}): {result.notice.reason}")
        for detail in result.notice.details:
            print(f"  - {detail}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    profile = MappingProfile()
    if args.load_profile:
        profile = MappingProfile.load(args.load_profile)
    profile = profile.overlay(_parse_mapping(args.salaries_column), _parse_mapping(args.column))

    if args.salaries:
        records, merge_report = merge_salaries_and_projections(
            salaries_path=args.salaries,
            projections_path=args.projections,
            salaries_mapping=profile.salaries_mapping or None,
            projection_mapping=profile.projection_mapping or None,
        )
        print(f"Merged {merge_report.matched_players}/{merge_report.total_players} players with projections")
        if merge_report.players_missing_projection:
            preview = ", ".join(merge_report.players_missing_projection[:5])
            more = len(merge_report.players_missing_projection) - 5
            suffix = f", +{more} more" if more > 0 else ""
            print(f"Players missing projections: {preview}{suffix}")
    else:
        records, load_report = load_records_from_csv(
            args.projections,
            mapping=profile.projection_mapping or None,
        )
        print(f"Loaded {load_report.loaded}/{load_report.total_rows} players")
        if load_report.rejected_rows:
            print(f"Skipped rows: {', '.join(load_report.rejected_rows[:5])}")

    if args.save_profile:
        profile.save(args.save_profile)
        print(f"Saved mapping profile to {args.save_profile}")

    try:
        settings = _settings_from_args(args)
    except (ValidationError, ValueError) as exc:
        print(f"Invalid settings: {exc}")
        return 2

    result = optimize(records, settings)

    args.output.write_text(export_lineups_to_csv(result.lineups), encoding="utf-8")
    print(f"Wrote {len(result.lineups)} lineup(s) to {args.output}")
    if args.summary:
        args.summary.write_text(export_lineup_summary(result.lineups), encoding="utf-8")
    if args.report:
        payload = {
            "settings": settings.model_dump(mode="json"),
            "lineups": len(result.lineups),
            "elapsed": result.elapsed,
            "notice": asdict(result.notice) if result.notice else None,
            "filter_summary": asdict(result.filter_summary) if result.filter_summary else None,
            "exposure": [asdict(entry) for entry in result.exposure],
            "exposure_gaps": [asdict(gap) for gap in result.exposure_gaps],
        }
        args.report.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote run report to {args.report}")

    _print_result(result)
    return 1 if result.notice is not None and not result.lineups else 0


if __name__ == "__main__":
    raise SystemExit(main())

"""REST API for the nbadfs lineup engine."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI
from fastapi.responses import Response

from nbadfs.api.schemas import (
    ExposureGapResponse,
    FilterSummaryResponse,
    LineupPlayerResponse,
    LineupResponse,
    LineupSlotResponse,
    NoticeResponse,
    OptimizeRequest,
    OptimizeResponse,
    PlayerExposureResponse,
    SlotAssignmentResponse,
    ValidateRequest,
    ValidationReportResponse,
    ViolationResponse,
)
from nbadfs.models import LineupResult
from nbadfs.optimizer import OptimizationResult, ValidationReport, optimize, validate_lineup
from nbadfs.pool import export_lineups_to_csv


logger = logging.getLogger(__name__)


def _lineup_response(lineup: LineupResult) -> LineupResponse:
    return LineupResponse(
        lineup_id=lineup.lineup_id,
        slots=[
            LineupSlotResponse(
                slot=entry.slot.value,
                player=LineupPlayerResponse(
                    player_id=entry.player.player_id,
                    name=entry.player.name,
                    team=entry.player.team,
                    opponent=entry.player.opponent,
                    positions=list(entry.player.positions),
                    salary=entry.player.salary,
                    projected_points=entry.player.projected_points,
                    floor=entry.player.floor,
                    ceiling=entry.player.ceiling,
                    ownership=entry.player.ownership,
                    leverage_score=entry.player.leverage_score,
                ),
            )
            for entry in lineup.slots
        ],
        total_salary=lineup.total_salary,
        remaining_salary=lineup.remaining_salary,
        projected_points=lineup.projected_points,
        total_floor=lineup.total_floor,
        total_ceiling=lineup.total_ceiling,
        avg_ownership=lineup.avg_ownership,
        total_leverage=lineup.total_leverage,
        avg_volatility=lineup.avg_volatility,
        avg_boom_probability=lineup.avg_boom_probability,
        avg_bust_probability=lineup.avg_bust_probability,
        teams=list(lineup.teams),
        team_count=lineup.team_count,
        game_count=lineup.game_count,
        salary_efficiency=lineup.salary_efficiency,
    )


def _optimize_response(result: OptimizationResult, slate_id: str | None) -> OptimizeResponse:
    notice = None
    if result.notice is not None:
        payload: dict[str, Any] = asdict(result.notice)
        payload["details"] = list(result.notice.details)
        notice = NoticeResponse(**payload)
    summary = None
    if result.filter_summary is not None:
        summary = FilterSummaryResponse(
            input_players=result.filter_summary.input_players,
            kept_players=result.filter_summary.kept_players,
            dropped=dict(result.filter_summary.dropped),
        )
    return OptimizeResponse(
        slate_id=slate_id,
        lineups=[_lineup_response(lineup) for lineup in result.lineups],
        exposure=[PlayerExposureResponse(**asdict(entry)) for entry in result.exposure],
        notice=notice,
        filter_summary=summary,
        exposure_gaps=[ExposureGapResponse(**asdict(gap)) for gap in result.exposure_gaps],
        elapsed=round(result.elapsed, 4),
    )


def _validation_response(report: ValidationReport) -> ValidationReportResponse:
    return ValidationReportResponse(
        valid=report.valid,
        violations=[ViolationResponse(code=v.code, message=v.message) for v in report.violations],
        total_salary=report.total_salary,
        remaining_salary=report.remaining_salary,
        projected_points=round(report.projected_points, 2),
        assignments=[
            SlotAssignmentResponse(slot=slot.value, player_id=record.player_id, name=record.name)
            for slot, record in report.assignments
        ],
    )


def create_app() -> FastAPI:
    app = FastAPI(title="nbadfs optimizer")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/optimize", response_model=OptimizeResponse)
    def run_optimize(request: OptimizeRequest) -> OptimizeResponse:
        logger.info(
            "Optimize request for slate %s: %s players, %s lineups (%s)",
            request.slate_id or "-",
            len(request.players),
            request.settings.num_lineups,
            request.settings.mode.value,
        )
        result = optimize(request.players, request.settings)
        return _optimize_response(result, request.slate_id)

    @app.post("/optimize/export.csv")
    def export_optimize(request: OptimizeRequest) -> Response:
        result = optimize(request.players, request.settings)
        filename = f"{request.slate_id or 'lineups'}.csv"
        return Response(
            content=export_lineups_to_csv(result.lineups),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/validate", response_model=ValidationReportResponse)
    async def validate(request: ValidateRequest) -> ValidationReportResponse:
        if all(entry.slot is None for entry in request.players):
            entries: list[Any] = [entry.player for entry in request.players]
        else:
            entries = [(entry.slot, entry.player) for entry in request.players]
        report = validate_lineup(
            entries,
            min_salary=request.min_salary,
            settings=request.settings,
        )
        return _validation_response(report)

    return app

import csv
import json

from nbadfs import cli
from nbadfs.config_loader import MappingProfile

from tests.sample_pools import slate_pool


COLUMNS = ["player_id", "name", "team", "opponent", "position", "salary", "FPTS", "ownership", "boom_probability"]


def _write_pool(path):
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)
        for record in slate_pool():
            writer.writerow(
                [
                    record.player_id,
                    record.name,
                    record.team,
                    record.opponent,
                    "/".join(record.positions),
                    record.salary,
                    record.projected_points,
                    record.ownership,
                    record.boom_probability,
                ]
            )
    return path


def test_cli_writes_contest_summary_and_report(tmp_path, capsys):
    pool = _write_pool(tmp_path / "pool.csv")
    output = tmp_path / "out.csv"
    summary = tmp_path / "summary.csv"
    report = tmp_path / "report.json"
    profile = tmp_path / "profile.json"

    code = cli.main(
        [
            str(pool),
            "--column",
            "projection=FPTS",
            "--mode",
            "gpp",
            "--lineups",
            "3",
            "--min-salary",
            "45000",
            "--team-stack",
            "BOS:2",
            "--seed",
            "4",
            "--output",
            str(output),
            "--summary",
            str(summary),
            "--report",
            str(report),
            "--save-profile",
            str(profile),
        ]
    )

    assert code == 0
    rows = list(csv.reader(output.open(encoding="utf-8")))
    assert rows[0][0] == "EntryName"
    assert len(rows) == 4

    payload = json.loads(report.read_text(encoding="utf-8"))
    assert payload["lineups"] == 3
    assert payload["notice"] is None
    assert payload["settings"]["team_stacks"] == [{"team": "BOS", "min_players": 2}]

    assert MappingProfile.load(profile).projection_mapping == {"projection": "FPTS"}
    assert summary.exists()
    assert "Loaded 40/40 players" in capsys.readouterr().out


def test_cli_rejects_invalid_settings(tmp_path, capsys):
    pool = _write_pool(tmp_path / "pool.csv")
    code = cli.main([str(pool), "--column", "projection=FPTS", "--lock", "p01", "--exclude", "p01"])
    assert code == 2
    assert "Invalid settings" in capsys.readouterr().out


def test_cli_reports_failed_batch(tmp_path, capsys):
    pool = _write_pool(tmp_path / "pool.csv")
    output = tmp_path / "empty.csv"
    code = cli.main(
        [str(pool), "--column", "projection=FPTS", "--mode", "cash", "--preset", "--output", str(output)]
    )
    assert code == 1
    assert "empty_pool" in capsys.readouterr().out
    assert output.read_text(encoding="utf-8").strip() == "EntryName,PG,SG,SF,PF,C,G,F,UTIL"


def test_mapping_profile_overlay():
    profile = MappingProfile(projection_mapping={"projection": "FPTS", "name": "Player"})
    merged = profile.overlay({}, {"name": "Name"})
    assert merged.projection_mapping == {"projection": "FPTS", "name": "Name"}
    assert profile.projection_mapping["name"] == "Player"

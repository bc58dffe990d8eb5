import pathlib
import sys
from datetime import datetime, timezone

import pandas as pd
import pytest

# Ensure package root is importable
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2]))

from star_visibility_pkg.main import build_parser
from star_visibility_pkg.main import main as entry_main
from star_visibility_pkg.main import parse_instant


def test_build_parser_required_args_present():
    parser = build_parser()
    required = {"csv", "out", "lat", "lon"}
    actions = {a.dest: a for a in parser._actions}
    for name in required:
        assert name in actions, f"Missing {name} argument"
        assert actions[name].required is True
    assert actions["min_alt"].default == 10.0
    assert actions["lead_min"].default == 30.0


def test_parse_instant_variants():
    expected = datetime(2024, 12, 15, 20, 0, tzinfo=timezone.utc)
    assert parse_instant("2024-12-15T20:00:00Z") == expected
    assert parse_instant("2024-12-15 20:00") == expected
    assert parse_instant("2024-12-15T21:00:00+01:00") == expected
    now = parse_instant(None)
    assert now.tzinfo is not None
    assert abs((datetime.now(timezone.utc) - now).total_seconds()) < 60


def test_parse_instant_malformed():
    with pytest.raises(ValueError):
        parse_instant("not a time")


def test_main_smoke(tmp_path, monkeypatch):
    csv_file = tmp_path / "stars.csv"
    csv_file.write_text("id,name,ra,dec\n1,Polaris,37.95,89.26\n")
    outdir = tmp_path / "runs" / "tonight"

    called = {}

    def fake_sweep(stars, location, now, cfg=None, tz=None, verbose=False):
        called["stars"] = stars
        called["location"] = location
        called["now"] = now
        called["cfg"] = cfg
        return pd.DataFrame({"star_id": ["1"], "status": ["visible_now"]})

    monkeypatch.setattr("star_visibility_pkg.main.sweep_saved_stars", fake_sweep)
    args = [
        "--csv",
        str(csv_file),
        "--out",
        str(outdir),
        "--lat",
        "48.8566",
        "--lon",
        "2.3522",
        "--at",
        "2024-12-15T20:00:00Z",
        "--min-alt",
        "15",
        "--lead-min",
        "45",
    ]
    monkeypatch.setattr(sys, "argv", ["prog"] + args)
    out_path = entry_main()
    assert called["stars"]["name"].tolist() == ["Polaris"]
    assert called["location"].lat_deg == pytest.approx(48.8566)
    assert called["now"] == datetime(2024, 12, 15, 20, 0, tzinfo=timezone.utc)
    assert called["cfg"].min_observation_alt_deg == 15.0
    assert called["cfg"].alert_lead_min == 45.0
    assert outdir.exists()
    assert out_path == outdir / "star_visibility.csv"
    assert out_path.exists()


def test_main_end_to_end(tmp_path, monkeypatch, capsys):
    csv_file = tmp_path / "stars.csv"
    csv_file.write_text(
        "id,name,ra,dec\n"
        "1,Polaris,02:31:49.09,+89:15:51\n"
        "2,Southern,95.99,-60\n"
    )
    outdir = tmp_path / "out"
    args = [
        "--csv",
        str(csv_file),
        "--out",
        str(outdir),
        "--lat",
        "51.5",
        "--lon",
        "-0.13",
        "--at",
        "2024-12-15T22:00:00Z",
        "--verbose",
    ]
    monkeypatch.setattr(sys, "argv", ["prog"] + args)
    entry_main()
    result = pd.read_csv(outdir / "star_visibility.csv")
    assert result["status"].tolist() == ["visible_now", "never_visible"]
    assert "Wrote 2 star(s)" in capsys.readouterr().out

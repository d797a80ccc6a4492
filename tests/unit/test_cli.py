import json
import re
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from calibration_service.cli import app

runner = CliRunner()

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def _plain(output: str) -> str:
    return ANSI_ESCAPE.sub("", output)


class TestSimulate:
    def test_writes_csv(self, tmp_path: Path) -> None:
        output = tmp_path / "responses.csv"

        result = runner.invoke(
            app, ["simulate", str(output), "-n", "30", "-i", "4", "-s", "1"]
        )

        assert result.exit_code == 0
        df = pd.read_csv(output)
        assert list(df.columns) == ["respondent_id", "item_id", "response"]
        assert len(df) == 120
        assert set(df["response"].unique()) <= {0.0, 1.0}


class TestCalibrate:
    def test_calibrates_simulated_data(self, tmp_path: Path) -> None:
        data_path = tmp_path / "responses.csv"
        json_path = tmp_path / "result.json"
        simulated = runner.invoke(
            app, ["simulate", str(data_path), "-n", "300", "-s", "3"]
        )
        assert simulated.exit_code == 0

        result = runner.invoke(
            app,
            ["calibrate", str(data_path), "-c", "math", "-o", str(json_path)],
        )

        assert result.exit_code == 0
        payload = json.loads(json_path.read_text())
        assert payload["competency_id"] == "math"
        assert payload["respondent_count"] == 300
        assert payload["item_count"] == 10
        assert len(payload["item_calibrations"]) == 10

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["calibrate", str(tmp_path / "x.csv")])

        assert result.exit_code == 1
        assert "File not found" in _plain(result.output)

    def test_rejects_non_csv(self, tmp_path: Path) -> None:
        path = tmp_path / "responses.txt"
        path.write_text("respondent_id,item_id,response\n")

        result = runner.invoke(app, ["calibrate", str(path)])

        assert result.exit_code == 1

    def test_insufficient_data(self, tmp_path: Path) -> None:
        data_path = tmp_path / "responses.csv"
        runner.invoke(app, ["simulate", str(data_path), "-n", "20", "-s", "1"])

        result = runner.invoke(app, ["calibrate", str(data_path)])

        assert result.exit_code == 1
        assert "Insufficient respondents" in _plain(result.output)


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "0.1.0" in _plain(result.output)

"""Tests for the command line entry point."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from openpyxl import Workbook

from resort_pricing_extraction import main


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _save(tmp_path: Path, rows: list[list[object]], title: str) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(row)
    file_path = tmp_path / "prices.xlsx"
    wb.save(file_path)
    return file_path


class TestMain:
    """Tests for exit codes and output."""

    def test_eligible_workbook(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = _save(
            tmp_path,
            [["Resort: Hotel Sol"], [None, "Jan", "Feb"], ["2N/2pax", 150, 160]],
            "Hotel Sol",
        )
        monkeypatch.setattr("sys.argv", ["resort-pricing-extraction", str(path)])

        main()

        data = json.loads(capsys.readouterr().out)
        assert data[0]["resort_name"] == "Hotel Sol"
        assert len(data[0]["pricing"]) == 2

    def test_critical_issue_exits_1(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = _save(tmp_path, [[None, "Jan"], ["2N/2pax", 150]], "Sheet1")
        monkeypatch.setattr("sys.argv", ["resort-pricing-extraction", str(path)])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

    def test_missing_file_exits_2(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        missing = tmp_path / "missing.xlsx"
        monkeypatch.setattr("sys.argv", ["resort-pricing-extraction", str(missing)])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2
        assert "missing.xlsx" in capsys.readouterr().err

    def test_usage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.argv", ["resort-pricing-extraction"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2

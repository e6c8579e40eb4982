#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from importlib import resources

from omegaconf import OmegaConf
from rich.console import Console

from cadence.endpoints.preview_month import preview
from cadence.interactive.display import display_grid, format_cell
from cadence.recurrence.calendar_grid import CalendarCell, build_grid
from cadence.recurrence.occurrences import Occurrence


def _occurrence(hour: int, event_id: int = 1, all_day: bool = False) -> Occurrence:
    start = datetime.datetime(2024, 2, 14, hour)
    return Occurrence(
        event_id=event_id,
        start=start,
        end=start + datetime.timedelta(hours=1),
        all_day=all_day,
    )


def test_format_cell():
    cell = CalendarCell(
        date=datetime.date(2024, 2, 14),
        is_in_current_period=True,
        events=(_occurrence(9), _occurrence(0, event_id=2, all_day=True)),
    )
    assert format_cell(cell).plain == "14\n09:00 #1\nall day #2"


def test_format_cell_truncates_events():
    cell = CalendarCell(
        date=datetime.date(2024, 2, 14),
        is_in_current_period=True,
        events=tuple(_occurrence(h) for h in range(8, 13)),
    )
    assert format_cell(cell, max_events=2).plain.splitlines()[-1] == "+3 more"


def test_display_grid():
    console = Console(record=True, width=120)
    cells = build_grid("2024-02", 1, [_occurrence(9)])
    display_grid(cells, 1, title="February 2024", console=console)
    output = console.export_text()
    assert "February 2024" in output
    assert "Mon" in output and "Sun" in output
    assert "09:00 #1" in output


def test_preview_endpoint(capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "150")
    config_file = resources.files("cadence.configs.endpoints") / "preview_month.yaml"
    cfg = OmegaConf.load(str(config_file))
    preview(cfg)
    output = capsys.readouterr().out
    assert "February 2024" in output
    assert "18:00 #1" in output

#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from rich.console import Console
from rich.table import Table
from rich.text import Text

from cadence.recurrence.calendar_grid import CalendarCell, weekday_labels, weeks


def format_cell(cell: CalendarCell, max_events: int = 3) -> Text:
    """The day number followed by the start time of up to `max_events`
    occurrences on that day."""
    style = "bold" if cell.is_in_current_period else "dim"
    if cell.is_today:
        style += " reverse"
    text = Text(f"{cell.date.day:>2}", style=style)
    for occurrence in cell.events[:max_events]:
        label = "all day" if occurrence.all_day else occurrence.start.strftime("%H:%M")
        text.append(f"\n{label} #{occurrence.event_id}", style="cyan")
    if len(cell.events) > max_events:
        text.append(f"\n+{len(cell.events) - max_events} more", style="magenta")
    return text


def display_grid(
    cells: list[CalendarCell],
    start_of_week: int,
    title: str | None = None,
    console: Console | None = None,
):
    """Display a calendar grid as a rich table with the following format

    ┏━━━━━━━┳━━━━━━━┳━━━━━━━┳━━━━━━━┳━━━━━━━┳━━━━━━━┳━━━━━━━┓
    ┃ Mon   ┃ Tue   ┃ Wed   ┃ Thu   ┃ Fri   ┃ Sat   ┃ Sun   ┃
    ┡━━━━━━━╇━━━━━━━╇━━━━━━━╇━━━━━━━╇━━━━━━━╇━━━━━━━╇━━━━━━━┩
    """  # noqa

    console = console or Console()
    table = Table(
        title=title, show_header=True, header_style="bold magenta", show_lines=True
    )
    for label in weekday_labels(start_of_week):
        table.add_column(label, justify="left", no_wrap=True)
    for week in weeks(cells):
        table.add_row(*(format_cell(cell) for cell in week))
    console.print(table)

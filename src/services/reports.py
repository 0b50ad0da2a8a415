"""
Plain-text rendering of capacity summaries and forecasts.
"""

from datetime import date

from models.capacity import CapacityForecast, CapacitySummary

SUMMARY_HEADERS = ["Engineer", "Projects", "Tasks", "Logged", "Capacity", "Util %", "Alert"]
FORECAST_HEADERS = ["Engineer", "Hours", "Util %", "Status", "Top projects"]


def format_date_display(d: date) -> str:
    """Format date as M/D/YYYY (platform-safe, no zero-padding)."""
    return f"{d.month}/{d.day}/{d.year}"


def format_date_short(d: date) -> str:
    """Format date as 'Mon D' (platform-safe, e.g., 'Nov 7')."""
    return f"{d.strftime('%b')} {d.day}"


def format_hours(hours: float) -> str:
    return f"{hours:,.2f}".rstrip("0").rstrip(".") + "h"


def render_table(headers: list[str], rows: list[list[str]]) -> list[str]:
    """Left-align the first column, right-align the rest."""
    widths = [len(header) for header in headers]
    for row in rows:
        for col_idx, value in enumerate(row):
            widths[col_idx] = max(widths[col_idx], len(value))

    def line(values: list[str]) -> str:
        cells = [
            value.ljust(widths[col_idx]) if col_idx == 0 else value.rjust(widths[col_idx])
            for col_idx, value in enumerate(values)
        ]
        return "  ".join(cells).rstrip()

    return [line(headers), "  ".join("-" * width for width in widths)] + [line(row) for row in rows]


def render_summary(summary: CapacitySummary) -> list[str]:
    """
    Summary table, one row per engineer, plus a team line.

    Example:
        Capacity summary 1/1/2025 - 1/31/2025
        Engineer     Projects  Tasks  Logged  Capacity  Util %   Alert
        ...
        Team: 200h of 320h logged (62.5%)
    """
    period = summary.period
    lines = [
        f"Capacity summary {format_date_display(period.start)} - {format_date_display(period.end)}"
    ]
    if not summary.members:
        lines.append("No active engineers found.")
        return lines

    rows = [
        [
            member.name,
            str(member.projects),
            str(member.tasks),
            format_hours(member.logged_hours),
            format_hours(member.capacity_hours),
            f"{member.utilization:.1f}",
            member.alert.upper() if member.alert != "normal" else member.alert,
        ]
        for member in summary.members
    ]
    lines.extend(render_table(SUMMARY_HEADERS, rows))

    totals = summary.team_totals
    lines.append(
        f"Team: {format_hours(totals.logged_hours)} of {format_hours(totals.capacity_hours)} "
        f"logged ({totals.avg_utilization:.1f}%)"
    )
    return lines


def render_forecast(forecast: CapacityForecast) -> list[str]:
    """One block per week: header with health, then its allocations."""
    window = forecast.window
    lines = [f"Workload forecast: {window.weeks} week(s) from {format_date_display(window.start)}"]
    if not forecast.weeks:
        lines.append("No active engineers found.")
        return lines

    for week in forecast.weeks:
        lines.append("")
        lines.append(f"{week.label}  [{week.health}]")
        if not week.allocations:
            lines.append("  (no scheduled work)")
            continue

        rows = []
        for allocation in week.allocations:
            mix = ""
            if allocation.top_projects:
                mix = ", ".join(
                    f"{entry.project} ({format_hours(entry.hours)})" for entry in allocation.top_projects
                )
            rows.append(
                [
                    allocation.name,
                    format_hours(allocation.hours),
                    str(allocation.utilization),
                    allocation.status,
                    mix,
                ]
            )
        lines.extend("  " + line for line in render_table(FORECAST_HEADERS, rows))
    return lines

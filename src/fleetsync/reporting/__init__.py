"""Run reporting: aggregation, console summary and markdown step summary."""

from fleetsync.reporting.aggregate import aggregate_stats, build_run_result
from fleetsync.reporting.console import format_summary
from fleetsync.reporting.summary import render_step_summary, write_step_summary

__all__ = [
    "aggregate_stats",
    "build_run_result",
    "format_summary",
    "render_step_summary",
    "write_step_summary",
]

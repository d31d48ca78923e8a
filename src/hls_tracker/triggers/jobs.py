"""Dagster job definitions for tracker checks."""

from dagster import job

from hls_tracker.ops import check_tracker


@job
def check_tracker_job() -> None:
    """Run one tracker check; the tracker ID comes from run config."""
    check_tracker()

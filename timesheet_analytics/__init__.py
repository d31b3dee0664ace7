"""Timesheet analytics aggregation engine and API."""

"""Pipeline orchestration.

This module sequences export, import, and report for one run.
It owns the working directory, retries, and runner step outputs.
"""

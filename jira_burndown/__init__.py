"""Jira Burndown - burndown reports and completion forecasts from JIRA data.

Reconstructs the weekly completion history of JIRA issues from their
changelogs, and projects completion dates from the resulting velocity.
"""

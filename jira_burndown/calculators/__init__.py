"""Calculators for Jira Burndown."""

"""Audit trail, statistics and report services."""

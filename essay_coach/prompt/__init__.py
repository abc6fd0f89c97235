"""Examiner prompt templates."""

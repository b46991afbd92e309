"""Decode orchestration, data model and error taxonomy."""

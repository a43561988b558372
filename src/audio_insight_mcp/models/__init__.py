"""Pydantic models for extraction results and session state."""

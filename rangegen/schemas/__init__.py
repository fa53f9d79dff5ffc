"""Embedded JSON Schemas."""

"""Domänenmodelle und API-Schemas."""

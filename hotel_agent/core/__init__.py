"""Konfiguration, Fehler, Guardrails, Sicherheit, Logging."""

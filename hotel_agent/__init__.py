"""Backend für den Retell-Hotel-Voice-Agenten."""

"""Stream list API: a JSON-file backed record store served over FastAPI."""

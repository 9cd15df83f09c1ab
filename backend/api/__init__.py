"""HTTP API for tournament alerts."""

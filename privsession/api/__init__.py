"""HTTP API for the session keeper."""

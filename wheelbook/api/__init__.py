"""HTTP API for the wheelbook engine."""

"""HTTP API for VeloStore."""

"""HTTP API for weighted pool quotes."""

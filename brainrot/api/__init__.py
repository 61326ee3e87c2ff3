"""HTTP API for the abuse-prevention core."""

"""HTTP API of the ServiceOS server."""

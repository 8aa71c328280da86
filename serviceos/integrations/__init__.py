"""Clients for the third-party services ServiceOS depends on."""

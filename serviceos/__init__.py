"""ServiceOS.

Backend for a multi-tenant service business operating system: bookings, a
blog, a file/media library and a site builder for each organization, plus a
token-authenticated portal for the organization's own clients.

Core subpackages
----------------

- ``serviceos.core``: configuration-independent building blocks (logging,
  monitoring, domain errors, calendar helpers and the database layer).
- ``serviceos.assistants``: LLM assistants that turn chat instructions into
  database mutations through a bounded tool-call loop.
- ``serviceos.integrations``: clients for cloud storage, the stock-photo API
  and LLM-based file analysis.
- ``serviceos.server``: the FastAPI application exposing the JSON API.
"""

__version__ = "0.1.0"

"""
Service layer abstraction.

Each service encapsulates business logic for a domain and talks to
SQLite through ``core.db``.  Services raise the typed errors from
``core.exceptions``; they never build HTTP responses.
"""

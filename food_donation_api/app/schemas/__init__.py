"""
Pydantic schema definitions for API payloads.

Each domain (users, restaurants, donations) defines its own Pydantic
models for request and response bodies.  Schemas are separated from
the SQLite rows to decouple the API representation from persistence.
"""

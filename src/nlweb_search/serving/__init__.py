"""
Serving: FastAPI application for search, ingest and clear.

The ``/ask`` endpoint answers in the NLWeb result format, optionally as a
Server-Sent Events stream, so a chat widget can consume it directly.
"""

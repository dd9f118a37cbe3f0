"""
MovieGo API: Pydantic Schemas
=============================

Domain records returned by the stores and the request/response shapes used
by the routes. Kept separate from the SQLAlchemy models so the API contract
can hide internal columns (password hashes, versions, timestamps).
"""

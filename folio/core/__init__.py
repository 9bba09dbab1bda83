"""
Core utilities shared across the Folio backend.

Configuration, typed errors, credential hashing and logging setup live here.
Repositories and services depend on these primitives instead of reading the
environment or configuring logging themselves.
"""

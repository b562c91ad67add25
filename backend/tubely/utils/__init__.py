"""
Utilities Package for the Tubely backend.

logger:
    Structured logging configuration (JSON and text formatters,
    application-wide setup, context-enriched adapters).

security:
    Password hashing and verification with passlib bcrypt.
"""

"""Infrastructure layer — the shared agreement store and its change feed.

This layer depends on stdlib, SQLAlchemy, and the domain record models.
It must never import from services, commands, or output.
"""

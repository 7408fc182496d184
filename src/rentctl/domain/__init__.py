"""Domain layer — agreement records, roles, and signature capture.

This layer depends only on stdlib, pydantic, and Pillow.
It must never import from services, infrastructure, commands, or config.
"""

"""Domain layer — entity types, screen contexts, and enums.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""

"""Service layer — formatting, projection, and load orchestration.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""

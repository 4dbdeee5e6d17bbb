"""Infrastructure layer — execution contexts, data sources, cache storage.

This layer depends on stdlib, the domain layer, and third-party libs
(SQLAlchemy). It implements the collaborator protocols declared in
``itemscreen.services.contracts`` and must never import from commands
or output.
"""

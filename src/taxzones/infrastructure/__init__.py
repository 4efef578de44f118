"""Infrastructure layer — database, catalog repository, migrations.

This layer depends on stdlib and third-party libs (SQLAlchemy, Alembic).
The service layer bridges between domain models and infrastructure.
"""

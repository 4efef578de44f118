"""Domain layer — geography, zones, and matching rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, or config.
"""

"""Service layer — zone resolution and catalog maintenance returning ServiceResult.

Services may import from domain, infrastructure, and config layers.
"""

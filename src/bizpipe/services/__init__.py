"""Service layer — business commands returning ServiceResult.

Services may import from domain and infrastructure layers.
They must never import from config or bootstrap.
"""

"""Domain layer — domain object contract, validation rules and failure types.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, plugins, or config.
"""

"""Infrastructure layer — data proxy contract and reference proxies.

Concrete proxies depend on third-party libs (SQLAlchemy).
It must never import from services, plugins, or config.
The service layer talks to storage only through :mod:`.proxy`.
"""

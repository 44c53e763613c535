"""
External system integrations (ranking pages, TMDb).

Clients for third-party services live under this namespace so they remain
decoupled from app entrypoints (`api/`) and scripts (`scripts/`).
"""

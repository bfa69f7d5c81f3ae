"""Application layer: the auth core services and their DTOs.

Services depend only on domain protocols; adapters are injected by the
container.
"""

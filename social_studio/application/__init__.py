"""
Application Layer - Use-case orchestration

Coordinates the domain with the infrastructure through the interfaces
declared in ``application.interfaces``.
"""

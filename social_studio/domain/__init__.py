"""
Domain Layer - Pure Business Logic

This layer contains:
- Entities: Users and the lead-capture submissions
- Value Objects: Email normalization
- Exceptions: The account lifecycle error taxonomy

No external dependencies allowed in this layer.
"""

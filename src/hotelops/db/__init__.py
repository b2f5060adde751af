"""Database layer: models, sessions and tenant isolation."""

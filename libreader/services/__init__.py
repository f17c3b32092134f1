"""Service layer for library business logic."""

"""Request middleware and request-scoped dependencies."""

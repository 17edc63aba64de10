"""Domain core: models, identity resolution and error types."""

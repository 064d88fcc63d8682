"""HTTP edge: dependencies, models, middleware and routes."""

"""HTTP API layer - FastAPI application, routes and boundary error handling."""

"""Application layer: configuration, controller and FastAPI surface."""

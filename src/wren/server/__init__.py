"""ASGI server layer — dispatch, route wrappers, error normalization."""

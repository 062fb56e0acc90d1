"""HTTP layer: FastAPI app, request/response models, routes and error mapping."""

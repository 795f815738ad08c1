"""HTTP layer: FastAPI app and per-request stream orchestration."""

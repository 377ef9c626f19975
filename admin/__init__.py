"""Web backoffice: FastAPI app, HTML pages and JSON action routes."""

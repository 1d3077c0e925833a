"""HTTP API server package.

WHY: Exposes compile and run over HTTP for tools that cannot shell out.

HOW: app.py defines the FastAPI application, models.py the pydantic
schemas. Run with the ``rerun-api`` console script.
"""

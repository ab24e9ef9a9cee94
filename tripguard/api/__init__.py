"""tripguard REST API module.

Provides create_api_app() factory for building the FastAPI application.
"""

"""
FastAPI application, authentication and routes
"""

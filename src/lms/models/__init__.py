"""
ORM models, request schemas and database helpers
"""

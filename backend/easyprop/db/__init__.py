"""
Database engine, session factory and ORM models
"""

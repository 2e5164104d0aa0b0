"""
Shared helpers: caching, scheduling, validation and formatting
"""

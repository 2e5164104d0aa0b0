"""
API endpoint routers
"""

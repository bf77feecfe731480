"""
Shared core helpers: base configuration, logging and request context.
"""

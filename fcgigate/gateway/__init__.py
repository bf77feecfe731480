"""
Gateway application: HTTP front controller for a FastCGI upstream.
"""

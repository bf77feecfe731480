"""
fcgigate - HTTP front end for FastCGI script interpreters.
"""

__version__ = "1.0.0"

SERVER_SOFTWARE = f"fcgigate/{__version__}"

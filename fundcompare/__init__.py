# fundcompare/__init__.py
"""
Fund comparison return calculation engine and HTTP API.
"""

__version__ = "0.1.0"

"""
Core package for the TabWriter service: configuration, the error taxonomy
and the FastAPI application factory.
"""

# Avoid importing create_app here to prevent circular imports
# from tabwriter.core.app import create_app

"""
Auto-parts catalog service: category tree, request cache and catalog API
"""
__version__ = "1.0.0"

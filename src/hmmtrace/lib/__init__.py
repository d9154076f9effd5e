"""
Internal helpers: resource management, optional acceleration and structural protocols.
"""

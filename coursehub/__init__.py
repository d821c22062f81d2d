"""
coursehub
University course management API
"""

__version__ = "1.0.0"

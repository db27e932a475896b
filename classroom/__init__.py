"""
Classroom backend - session and access-control core.
"""

__version__ = "0.1.0"

"""
============================================================================
Lights HTTP v1.0.0
Authenticated HTTP control surface for networked lights
============================================================================
"""

__version__ = "1.0.0"

"""
Smart City Dashboard - city snapshot aggregation service
"""

__version__ = "1.0.0"

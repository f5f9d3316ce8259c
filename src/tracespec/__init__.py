"""
TraceSpec - OpenAPI synthesis from captured HTTP traffic.
"""

__version__ = "1.0.0"

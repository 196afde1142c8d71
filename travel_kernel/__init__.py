"""
Travel Kernel

Shared foundation for the German travel expense (Reisekosten) packages:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Decimal coercion and rounding for monetary amounts
"""

__version__ = "0.1.0"

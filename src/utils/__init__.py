"""
Shared utilities for dump conversion

Provides:
- logging: console/JSON logging setup
- tracing: OpenTelemetry spans around row conversion
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing"]

"""
Hello OpenTelemetry
A minimal HTTP service that exports traces and logs to a local OTel Collector.
"""

__version__ = "0.1.0"
__author__ = "Platform Observability Team"

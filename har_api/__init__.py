"""
HAR API - Extract JSON and GraphQL API calls from HAR data.

This package provides tools for:
- Loading and validating HAR files
- Classifying entries as JSON / GraphQL requests
- Formatting the surviving requests into LLM-friendly reports
- Capturing live browser traffic into HAR entries
"""

__version__ = "1.0.0"

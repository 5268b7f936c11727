"""Shared MongoDB utilities.

This package centralizes:
- pymongo client configuration
- ObjectId parsing and document serialization for API responses
- typed, expressive errors for consistent HTTP error envelopes
- a thin collection wrapper that maps driver failures onto those errors

"""

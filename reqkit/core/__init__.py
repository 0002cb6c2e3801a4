"""Core utilities and shared request/response primitives.

Modules in this package should be framework-agnostic where possible and
focused on configuration, validation, and small reusable helpers.
"""

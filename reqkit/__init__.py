"""Helpers for serverless HTTP handlers: parameter validation, bearer token
identity, response envelopes and a catch-all guard."""

"""Reusable patterns for building business-rule verticals.

Each module demonstrates a self-contained pattern that can be adapted
to any domain: rules engines, repository layers, and domain
configuration.
"""

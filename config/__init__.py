"""Top-level package for Django configuration.

This package holds the settings modules of the shared calendar for the
different environments.
"""

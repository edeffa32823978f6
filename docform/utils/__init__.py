"""
Document-facing utilities for the form builder.
"""

"""
Placeholder extraction and mobile form-schema compiler for Word templates.
"""

__version__ = "0.1.0"

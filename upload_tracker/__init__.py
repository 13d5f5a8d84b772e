"""
upload-tracker: a concurrent multi-item upload tracking engine.
"""

__version__ = "0.1.0"

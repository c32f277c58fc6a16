"""
serieswatch - new release detection for followed audiobook series.

Periodically compares the Audible catalog's view of a series against the
books a user already owns and the releases already reported, and records
whatever is new.
"""

__version__ = "0.1.0"

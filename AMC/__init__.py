"""
AMC - Agent Management Console

Terminal console for observing the managed agent service through its live log.
"""

__version__ = "0.3.0"

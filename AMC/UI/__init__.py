"""
AMC UI Package
"""

from .app import ConsoleApp, run_app

__all__ = [
    'ConsoleApp',
    'run_app',
]

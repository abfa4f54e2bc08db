"""
browser-harness: disposable local browser environments for UI tests.
"""

__version__ = "0.1.0"

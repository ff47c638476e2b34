"""
tellbot - IRC bot that remembers who it has seen and passes on messages.
"""

__version__ = "0.1.0"

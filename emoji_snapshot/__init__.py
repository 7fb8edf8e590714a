"""
Emoji Snapshot: single-frame facial expression to emoji.
"""

__version__ = '1.0.0'

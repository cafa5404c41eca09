"""
AudioFlags: line flags with sound cues for plain text files.
"""

__version__ = "0.1.0"

"""
meetingslots - suggest free meeting slots across Google calendars.
"""

__version__ = "0.1.0"

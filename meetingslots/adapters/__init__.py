"""
Adapters layer - External integrations (Google Calendar API).
"""

from .google_authenticator import GoogleAuthenticator
from .google_calendar_client import GoogleCalendarClient
from .mock_calendar_client import MockAuthenticator, MockCalendarClient

__all__ = ["GoogleAuthenticator", "GoogleCalendarClient", "MockAuthenticator", "MockCalendarClient"]

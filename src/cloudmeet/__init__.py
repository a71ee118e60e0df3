"""cloudmeet: calendar availability and booking writes over Google Calendar."""

__version__ = "0.1.0"

"""
Home environments ledger.

Tracks homes and rooms, the SwitchBot devices placed in them, the
non-overlapping history of where each device has been, and the readings each
device reports. ``app.services.container.ServiceContainer`` wires the
services together for collaborators.
"""

__version__ = "0.1.0"

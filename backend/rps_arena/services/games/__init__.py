"""Game domain services: rules, rooms, timers and room reclamation.

This package holds the room coordinator and game mechanics. It does not
import Flask or Socket.IO; the transport layer hands in a notifier and a
scheduler, keeping transport concerns separated from core game mechanics.
"""

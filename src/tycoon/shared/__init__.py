"""Definitions shared by the client core and the game service."""

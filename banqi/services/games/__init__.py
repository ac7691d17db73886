"""Game domain services: rules, game state and rooms.

This package contains the pure game logic that the HTTP routes and socket
handlers call into, keeping transport concerns separated from the rules.
"""

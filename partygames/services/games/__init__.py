"""Game play domain services: access, scoring, recording and ranking.

This package contains the play pipeline that the HTTP routes call,
keeping request parsing and response shaping out of the game rules.
"""

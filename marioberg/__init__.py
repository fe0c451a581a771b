"""
Marioberg - a "first to five houses" win-condition game mode.
"""

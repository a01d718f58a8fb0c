"""Domain services for kartboard.

Round scoring and tie resolution live in ``services.rounds``; leaderboard
and player statistics in ``services.stats``. Routes and socket handlers
import from here, keeping transport concerns out of the game rules.
"""

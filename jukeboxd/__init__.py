"""Jukeboxd core: social graph, album ratings/reviews, activity feed and account lifecycle."""

__version__ = "0.1.0"

"""Morning Quest: a gamified morning-routine timer for kids."""

__version__ = "0.1.0"

"""Domain layer for the bible reading coach."""

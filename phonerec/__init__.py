"""User-based collaborative filtering recommender for phone models."""

__version__ = "0.1.0"

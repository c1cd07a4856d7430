"""Personalized feed ranking engine."""
__version__ = "1.0.0"

"""Mealwise Web - HTTP routes."""

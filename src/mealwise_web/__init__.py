"""
Mealwise Web - HTTP service for shopping list estimates and exports.

Built on the mealwise core; adds storage backends, session auth and routes.
"""

__version__ = "0.3.0"

"""
Mealwise - shopping list budget estimation and meal plan exports.

Packages:
- core: estimate modes and shopping categories
- planning: plan normalization for exports
- shopping: shopping list aggregation
- budget: price baseline estimation
- export: CSV and PDF renderers
"""

__version__ = "0.3.0"

"""
Anise - recipe import and ingredient normalization.

Packages:
- ingredients: parse raw ingredient lines and resolve them against the catalog
- recipes: scrape, extract and persist recipes
- jobs: job/step audit log with ambient context
- planning: meal plans and shopping lists
"""

__version__ = "0.3.0"

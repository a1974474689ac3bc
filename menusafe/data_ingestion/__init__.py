"""
Catalog import.

Responsibilities:
- Read a CSV export of known restaurants (name, coordinates, optional menu).
- Normalize columns and drop rows with unusable coordinates.
- Feed each row through the resolver so duplicates merge instead of piling up.
"""

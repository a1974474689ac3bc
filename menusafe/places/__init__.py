"""
External place verification.

Responsibilities:
- Ask Google Places whether a named restaurant exists near a coordinate.
- List nearby restaurants for map-driven lookups.
- Fail open: any API problem reads as "not found".
"""

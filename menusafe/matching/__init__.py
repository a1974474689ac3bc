"""
Entity matching primitives.

Responsibilities:
- Score how alike two restaurant or menu-item names are.
- Measure great-circle distance between two coordinates.
- Decide whether a candidate restaurant is the same entity as a stored one,
  using name similarity and distance thresholds together.
"""

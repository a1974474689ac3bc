"""
Restaurant resolution.

Responsibilities:
- Accept menu observations from camera captures, manual entry and scrapes.
- Match each observation against known restaurants (exact, then fuzzy).
- Cross-check unmatched observations with an external place verifier.
- Persist the outcome as a create, update or menu-only update.
"""

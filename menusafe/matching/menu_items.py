from __future__ import annotations

from .similarity import similarity

NAME_WEIGHT = 0.7
ALLERGEN_WEIGHT = 0.3


def menu_item_similarity(item1, item2) -> float:
    """Blend of name similarity (70%) and allergen Jaccard overlap (30%)."""
    name_sim = similarity(item1.name, item2.name)

    allergens1 = set(item1.allergens)
    allergens2 = set(item2.allergens)
    union = allergens1 | allergens2
    # No allergens on either side counts as full agreement
    allergen_sim = len(allergens1 & allergens2) / len(union) if union else 1.0

    return NAME_WEIGHT * name_sim + ALLERGEN_WEIGHT * allergen_sim


def merge_menu_items(existing: list, incoming: list, threshold: float = 0.8) -> list:
    """
    Merge ``incoming`` menu items into ``existing``.

    Each incoming item replaces the stored item it best matches (score at or
    above ``threshold``); unmatched stored items are kept in place and
    unmatched incoming items are appended.
    """
    merged = list(existing)
    claimed: set[int] = set()

    for item in incoming:
        best_idx: int | None = None
        best_score = 0.0
        for idx, current in enumerate(existing):
            if idx in claimed:
                continue
            score = menu_item_similarity(item, current)
            if score > best_score:
                best_idx, best_score = idx, score

        if best_idx is not None and best_score >= threshold:
            merged[best_idx] = item
            claimed.add(best_idx)
        else:
            merged.append(item)

    return merged

"""Keyword heuristics that pull clothing item names out of feedback text."""

import re
from typing import Any, Dict, List

MAX_CANDIDATES = 6
MAX_ITEMS = 4

CLOTHING_CATEGORIES: Dict[str, List[str]] = {
    "tops": [
        "shirt", "blouse", "top", "sweater", "cardigan", "hoodie", "t-shirt",
        "tee", "polo", "turtleneck", "tank", "camisole",
    ],
    "bottoms": [
        "pants", "jeans", "trousers", "shorts", "skirt", "leggings", "chinos",
        "slacks",
    ],
    "dresses": ["dress", "gown", "sundress"],
    "footwear": [
        "shoes", "sneakers", "heels", "boots", "sandals", "flats", "loafers",
        "oxfords", "pumps",
    ],
    "accessories": [
        "belt", "bag", "purse", "backpack", "hat", "scarf", "necklace",
        "bracelet", "earrings", "watch", "sunglasses",
    ],
    "outerwear": ["coat", "jacket", "blazer", "vest", "parka", "trench"],
}

COLORS = [
    "red", "blue", "green", "yellow", "orange", "purple", "pink", "black",
    "white", "gray", "grey", "brown", "navy", "beige", "cream", "tan", "olive",
    "maroon", "teal", "coral", "burgundy", "khaki",
]

DESCRIPTORS = COLORS + [
    "striped", "plaid", "checkered", "floral", "graphic", "denim", "leather",
    "cotton", "silk", "wool", "linen", "suede", "velvet", "knit", "oversized",
    "fitted", "slim", "cropped", "tailored", "relaxed", "high-waisted",
    "wide-leg", "skinny", "straight", "midi", "maxi", "mini", "crop",
    "button-down", "v-neck", "sleeveless", "chunky", "white-soled",
]

_GARMENTS = sorted(
    {garment for garments in CLOTHING_CATEGORIES.values() for garment in garments},
    key=len,
    reverse=True,
)
_GARMENT_ALT = "|".join(re.escape(garment) for garment in _GARMENTS)
_DESCRIPTOR_ALT = "|".join(
    re.escape(word) for word in sorted(DESCRIPTORS, key=len, reverse=True)
)

# Up to two descriptors in front of a garment: "navy wool blazer", "white sneakers".
_DESCRIBED_GARMENT = re.compile(
    rf"\b((?:(?:{_DESCRIPTOR_ALT})\s+){{1,2}})({_GARMENT_ALT})s?\b"
)
_BARE_GARMENT = re.compile(rf"\b({_GARMENT_ALT})s?\b")


def categorize_clothing_item(name: str) -> str:
    lowered = name.lower()
    for category, garments in CLOTHING_CATEGORIES.items():
        for garment in garments:
            if re.search(rf"\b{re.escape(garment)}s?\b", lowered):
                return category
    return "other"


def _title(phrase: str) -> str:
    return " ".join(word.capitalize() for word in phrase.split())


def extract_clothing_items(feedback_text: str) -> List[str]:
    """
    Return up to four clothing item names mentioned in ``feedback_text``.

    Described mentions ("navy blazer") win over bare ones ("blazer"), and
    names contained in an earlier one are dropped.
    """
    if not feedback_text:
        return []

    text = feedback_text.lower()
    candidates: List[str] = []

    for match in _DESCRIBED_GARMENT.finditer(text):
        phrase = f"{match.group(1).strip()} {match.group(2)}"
        if phrase not in candidates:
            candidates.append(phrase)

    for match in _BARE_GARMENT.finditer(text):
        garment = match.group(1)
        if not any(garment in existing for existing in candidates):
            candidates.append(garment)

    results: List[str] = []
    for candidate in candidates[:MAX_CANDIDATES]:
        if any(candidate in kept or kept in candidate for kept in results):
            continue
        results.append(candidate)

    return [_title(item) for item in results[:MAX_ITEMS]]


def build_clothing_entries(feedback_text: str) -> List[Dict[str, Any]]:
    """Clothing entries for a new wardrobe row, all awaiting render images."""
    return [
        {
            "name": name,
            "category": categorize_clothing_item(name),
            "descriptors": name.lower().split()[:-1],
            "confidence": 0.7,
            "source": "feedback-text",
        }
        for name in extract_clothing_items(feedback_text)
    ]

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional

import tiktoken

_TOKENIZER = None
_USE_PRECISE_TOKENS = False

SECTION_IDS: List[str] = ["overview", "structure", "key_files", "code_map", "knowledge"]

SECTION_TITLES: Dict[str, str] = {
    "overview": "Overview",
    "structure": "Structure",
    "key_files": "Key Files",
    "code_map": "Code Map",
    "knowledge": "Knowledge",
}

# Percent of the total budget.
SECTION_WEIGHTS: Dict[str, int] = {
    "overview": 8,
    "structure": 12,
    "key_files": 25,
    "code_map": 40,
    "knowledge": 15,
}


def configure_tokenizer(precise: bool, warnings: Optional[List[str]] = None) -> bool:
    """Switch between the character estimate and cl100k_base counts. Returns the mode in effect."""
    global _TOKENIZER, _USE_PRECISE_TOKENS
    _USE_PRECISE_TOKENS = bool(precise)
    if not _USE_PRECISE_TOKENS:
        return False
    if _TOKENIZER is not None:
        return True
    try:
        _TOKENIZER = tiktoken.get_encoding("cl100k_base")
    except Exception as exc:  # encoding download or cache failure
        _TOKENIZER = None
        _USE_PRECISE_TOKENS = False
        if warnings is not None:
            warnings.append(f"Precise token counting unavailable ({type(exc).__name__}); using character estimate")
        return False
    return True


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    if _USE_PRECISE_TOKENS and _TOKENIZER is not None:
        return len(_TOKENIZER.encode(text, disallowed_special=()))
    return math.ceil(len(text) / 4)


def chars_for_tokens(tokens: int) -> int:
    return max(0, tokens) * 4


def allocate(total_budget: int, weights: Optional[Mapping[str, int]] = None) -> Dict[str, int]:
    shares = weights or SECTION_WEIGHTS
    total = max(0, int(total_budget))
    return {section: total * percent // 100 for section, percent in shares.items()}


def redistribute(allocation: Mapping[str, int], used: Mapping[str, int]) -> Dict[str, int]:
    """Shrink under-used sections to their usage and hand the surplus to over-used ones.

    Each over-used section receives a share of the surplus proportional to its excess. With no
    surplus or no excess the allocation comes back unchanged.
    """
    surplus = 0
    demand: Dict[str, int] = {}
    for section, allocated in allocation.items():
        spent = used.get(section, 0)
        if spent < allocated:
            surplus += allocated - spent
        elif spent > allocated:
            demand[section] = spent - allocated
    total_demand = sum(demand.values())
    if surplus == 0 or total_demand == 0:
        return dict(allocation)

    revised: Dict[str, int] = {}
    for section, allocated in allocation.items():
        spent = used.get(section, 0)
        if section in demand:
            revised[section] = allocated + surplus * demand[section] // total_demand
        elif spent < allocated:
            revised[section] = spent
        else:
            revised[section] = allocated
    return revised

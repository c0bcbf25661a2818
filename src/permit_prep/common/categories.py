# ABOUTME: Declares the fixed question category domain shared by every component.
# ABOUTME: Parses free-form category strings and rejects anything outside the domain.

from __future__ import annotations

from enum import Enum
from typing import List, Union


class Category(Enum):
    """Question categories used in question files, attempts and breakdowns."""

    TRAFFIC_SIGNS = "Traffic Signs"
    TRAFFIC_LAWS = "Traffic Laws"
    DEFENSIVE_DRIVING = "Defensive Driving"
    SHARING_THE_ROAD = "Sharing the Road"
    RIGHT_OF_WAY = "Right of Way"
    PARKING = "Parking"
    ALCOHOL_AND_DRUGS = "Alcohol & Drugs"
    SPECIAL_SITUATIONS = "Special Situations"
    SAFE_DRIVING = "Safe Driving"

    @classmethod
    def parse(cls, value: Union["Category", str]) -> "Category":
        """
        Resolve a display value ("Right of Way") or member name ("RIGHT_OF_WAY").

        Raises ValueError for unknown values so typos never create new categories.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown category {value!r}.")
        text = value.strip()
        for member in cls:
            if member.value.lower() == text.lower() or member.name.lower() == text.lower():
                return member
        raise ValueError(f"Unknown category '{value}'. Expected one of: {', '.join(display_names())}.")

    def __str__(self) -> str:
        return self.value


def display_names() -> List[str]:
    return [member.value for member in Category]

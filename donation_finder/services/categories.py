# donation_finder/services/categories.py
# Lookup tables keyed by FacilityCategory. Every category must appear in every table.

from typing import Dict, List

from donation_finder.models.dto import FacilityCategory

SEARCH_TERMS: Dict[FacilityCategory, List[str]] = {
    FacilityCategory.FOOD_BANK: [
        "food bank",
        "food pantry",
        "soup kitchen",
        "community food center",
    ],
    FacilityCategory.HOMELESS_SHELTER: [
        "homeless shelter",
        "emergency shelter",
        "rescue mission",
        "salvation army",
    ],
    FacilityCategory.RECYCLING_CENTER: [
        "recycling center",
        "waste management",
        "drop off recycling",
    ],
    FacilityCategory.COMPOST_FACILITY: [
        "compost facility",
        "composting center",
        "organic waste",
    ],
}

DEFAULT_HOURS: Dict[FacilityCategory, str] = {
    FacilityCategory.FOOD_BANK: "Mon-Fri: 9AM-4PM, Sat: 9AM-2PM",
    FacilityCategory.HOMELESS_SHELTER: "24/7 - Meals at specific times",
    FacilityCategory.RECYCLING_CENTER: "Mon-Sat: 8AM-5PM",
    FacilityCategory.COMPOST_FACILITY: "Mon-Fri: 8AM-4PM, Sat: 9AM-3PM",
}

DEFAULT_ACCEPTED_ITEMS: Dict[FacilityCategory, List[str]] = {
    FacilityCategory.FOOD_BANK: ["Non-perishable food", "Canned goods", "Fresh produce", "Baby food"],
    FacilityCategory.HOMELESS_SHELTER: ["Hot meals", "Prepared food", "Beverages", "Snacks"],
    FacilityCategory.RECYCLING_CENTER: ["Paper", "Plastic", "Glass", "Metal", "Electronics"],
    FacilityCategory.COMPOST_FACILITY: ["Food scraps", "Yard waste", "Coffee grounds", "Paper towels"],
}

DESCRIPTION_TEMPLATES: Dict[FacilityCategory, str] = {
    FacilityCategory.FOOD_BANK: "{name} provides food assistance to community members in need.",
    FacilityCategory.HOMELESS_SHELTER: "{name} offers shelter and support services for individuals experiencing homelessness.",
    FacilityCategory.RECYCLING_CENTER: "{name} accepts recyclable materials to help protect the environment.",
    FacilityCategory.COMPOST_FACILITY: "{name} processes organic waste into compost for sustainable gardening.",
}

def search_terms(category: FacilityCategory) -> List[str]:
    return list(SEARCH_TERMS[category])

def default_hours(category: FacilityCategory) -> str:
    return DEFAULT_HOURS[category]

def default_accepted_items(category: FacilityCategory) -> List[str]:
    # Copy so callers can't mutate the shared table.
    return list(DEFAULT_ACCEPTED_ITEMS[category])

def default_description(category: FacilityCategory, name: str) -> str:
    return DESCRIPTION_TEMPLATES[category].format(name=name)

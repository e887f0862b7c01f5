# Points per event
POINTS_CONFIG = {
    "played": 1,
    "goal": 5,
    "assist": 3,
    "yellow_card": -1,
    "red_card": -4,
    "penalty_save": 5,
    "clean_sheet_goalkeeper": 5,
    "clean_sheet_defender": 3,
    "clean_sheet_midfielder": 1,
}

# Match status that counts as final
COMPLETED_STATUS = "COMPLETED"

# Multiplier applied to a starter's points when viewing a round breakdown
CAPTAIN_MULTIPLIERS = {
    "NONE": 1,
    "CAPTAIN": 2,
    "TRIPLE_CAPTAIN": 3,
}

# Alternate names accepted in points config files
POINTS_KEY_ALIASES = {
    "played_match": "played",
}

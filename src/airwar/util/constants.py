"""Game constants — fixed values that are not balance tunables.

Balance values (costs, rates, probabilities) live in
:class:`airwar.loaders.game_config_loader.GameConfig`.
"""

# -- Geography -----------------------------------------------------------

EARTH_RADIUS_KM: float = 6371.0
"""Mean earth radius used by all great-circle math."""

# -- Identifiers ---------------------------------------------------------

CITY_ID_PREFIX: str = "city-"
AIRCRAFT_ID_PREFIX: str = "plane-"
TEMPLATE_ID_PREFIX: str = "tmpl-"
RAID_ID_PREFIX: str = "raid-"

# -- Teams ---------------------------------------------------------------

TEAM_COUNT: int = 2
"""The conflict is strictly two-sided."""

DEFAULT_TEAMS: tuple = (
    {"name": "Red", "color": "#cc0000", "is_bot": False},
    {"name": "Blue", "color": "#0066cc", "is_bot": True},
)

# -- Persistence ---------------------------------------------------------

SNAPSHOT_VERSION: int = 1

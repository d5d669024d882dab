"""All tunable constants for the island tribe simulation.

Every magic number in the codebase must reference this file.
Rates are expressed per simulated second unless noted otherwise.
"""

# =============================================================================
# WORLD
# =============================================================================
ISLAND_RADIUS: float = 100.0
WATER_LEVEL: float = 0.0
STORE_POSITION: tuple[float, float] = (0.0, 0.0)

PALM_TREE_COUNT: int = 60
JUNGLE_TREE_COUNT: int = 100
ROCK_COUNT: int = 25
FISH_COUNT: int = 15

# (min_dist, max_dist, min_height) as fractions of the island radius for dists
PALM_PLACEMENT: tuple[float, float, float] = (0.5, 0.85, 2.0)
JUNGLE_TREE_PLACEMENT: tuple[float, float, float] = (0.05, 0.7, 3.0)
ROCK_PLACEMENT: tuple[float, float, float] = (0.6, 0.9, 1.5)
AGENT_PLACEMENT: tuple[float, float, float] = (0.1, 0.6, 3.0)
PLACEMENT_MAX_ATTEMPTS: int = 100

# Yield per world target: (initial min, initial max, regrowth max)
PALM_COCONUTS: tuple[int, int, int] = (1, 3, 3)
JUNGLE_TREE_WOOD: tuple[int, int, int] = (2, 4, 4)
ROCK_STONE: tuple[int, int, int] = (3, 6, 6)

# Regrowth probability per second for a target below its maximum
PALM_REGROWTH_RATE: float = 0.002
JUNGLE_TREE_REGROWTH_RATE: float = 0.001
ROCK_REGROWTH_RATE: float = 0.0005

# Grounding tolerances used by the sanity pass
FLOATING_THRESHOLD: float = 0.5
SINKING_THRESHOLD: float = 1.0

# =============================================================================
# TIME
# =============================================================================
FIXED_TIMESTEP: float = 1.0 / 20.0
MAX_STEPS_PER_FRAME: int = 50
DEFAULT_SEED: int = 12345
DAY_LENGTH_SECONDS: float = 300.0
START_TIME_OF_DAY: float = 0.3
LUNAR_CYCLE_DAYS: int = 8

# Time-of-day bands (fraction of a day)
DAWN_BAND: tuple[float, float] = (0.12, 0.2)
DUSK_BAND: tuple[float, float] = (0.8, 0.88)
NIGHT_END: float = 0.12
NIGHT_START: float = 0.88

# =============================================================================
# AGENTS
# =============================================================================
TRIBE_SIZE: int = 10
WALK_SPEED: float = 2.0
ARRIVAL_RADIUS: float = 1.5
INITIAL_AGE_RANGE: tuple[float, float] = (18.0, 33.0)
NEARBY_RADIUS: float = 10.0
SICK_CONTACT_RADIUS: float = 6.0
SHELTER_RADIUS: float = 4.0
IN_WATER_MARGIN: float = 0.2
DEEP_WATER_DEPTH: float = 2.0
APPRENTICE_RADIUS: float = 10.0

# =============================================================================
# NEEDS
# =============================================================================
HUNGER_DECAY_RATE: float = 0.003
HUNGER_MOVING_MULT: float = 1.3
HUNGER_SICK_MULT: float = 2.0
HUNGER_LOW_THRESHOLD: float = 0.3

ENERGY_DECAY_RATE: float = 0.002
ENERGY_RESTORE_RATE: float = 0.01
ENERGY_SHELTER_MULT: float = 2.0
ENERGY_LOW_THRESHOLD: float = 0.3
ENERGY_CRITICAL_THRESHOLD: float = 0.1
DROWN_ENERGY_DRAIN: float = 0.1
EXHAUSTION_DEATH_TIME: float = 10.0

HEALTH_DECAY_BASE: float = 0.0005
HEALTH_SICKNESS_DECAY: float = 0.005
HEALTH_RECOVER_RATE: float = 0.002
HEALTH_RECOVER_MIN_HUNGER: float = 0.5

SOCIAL_DECAY_RATE: float = 0.001
SOCIAL_RECOVER_RATE: float = 0.004
ISOLATION_THRESHOLD: float = 0.2
ISOLATION_HEALTH_PENALTY: float = 0.0002

REPRODUCTION_DRIVE_RATE: float = 0.0008
REPRODUCTION_THRESHOLD: float = 0.7
MATING_RANGE: float = 15.0

AGE_YEARS_PER_SECOND: float = 0.02
OLD_AGE_THRESHOLD: float = 55.0
MAX_NATURAL_AGE: float = 95.0
OLD_AGE_DEATH_FACTOR: float = 0.01

RAW_FOOD_SICKNESS_CHANCE: float = 0.3
SPOILED_FOOD_SICKNESS_CHANCE: float = 0.7
SICKNESS_SPREAD_CHANCE: float = 0.1
SICKNESS_DURATION: float = 60.0
VULNERABLE_STAGE_SICKNESS_MULT: float = 1.5
PREGNANT_SICKNESS_MULT: float = 1.3
FRAIL_SICKNESS_MULT: float = 1.5
FRAIL_HEALTH_THRESHOLD: float = 0.5

PREGNANCY_DURATION: float = 30.0
BIRTH_ENERGY_COST: float = 0.4
BIRTH_ENERGY_FLOOR: float = 0.1
CHILDBIRTH_COMPLICATION_CHANCE: float = 0.02
CHILDBIRTH_COMPLICATION_HEALTH: float = 0.3

MIN_EFFICIENCY: float = 0.1
OLD_AGE_EFFICIENCY_LOSS: float = 0.4

# Initial needs for a founding member: (low, high)
INITIAL_HUNGER: tuple[float, float] = (0.8, 1.0)
INITIAL_ENERGY: tuple[float, float] = (0.9, 1.0)
INITIAL_SOCIAL: tuple[float, float] = (0.7, 1.0)

# =============================================================================
# SKILLS
# =============================================================================
MAX_SKILL_LEVEL: int = 100
XP_PER_LEVEL: float = 100.0
XP_SCALING: float = 1.15
APPRENTICE_MARGIN: int = 10
APPRENTICE_BONUS_PER_MENTOR: float = 0.5
APPRENTICE_MAX_MULT: float = 2.0
COMBAT_WIN_BASE: float = 0.5
COMBAT_WIN_BOUNDS: tuple[float, float] = (0.1, 0.9)

# =============================================================================
# INVENTORY
# =============================================================================
PERSONAL_MAX_SLOTS: int = 12
PERSONAL_TOOL_CAPACITY: int = 1
STORE_MAX_SLOTS: int = 32
STORE_STACK_SCALE: int = 25
STORE_TOOL_CAPACITY: int = 20
STORE_TAKE_FOOD: int = 2

# =============================================================================
# COORDINATION & PLANNING
# =============================================================================
CRITICAL_HUNGER: float = 0.2
CRITICAL_ENERGY: float = 0.15
DESIRED_COCONUTS_PER_AGENT: int = 5
DESIRED_WOOD_PER_AGENT: int = 3
DESIRED_STONE_PER_AGENT: int = 2
MIN_DESIRED_SPEARS: int = 2
SPEARS_PER_AGENT_DIVISOR: int = 3

EAT_HUNGER_THRESHOLD: float = 0.25
STORE_FOOD_HUNGER_THRESHOLD: float = 0.3
MODERATE_HUNGER_THRESHOLD: float = 0.5
MODERATE_HUNGER_FOOD_URGENCY: float = 0.5     # store coconut urgency below which a peckish islander may eat
REST_ENERGY_THRESHOLD: float = 0.2
REST_DURATION: tuple[float, float] = (4.0, 4.0)          # base, random span
IDLE_REST_DURATION: tuple[float, float] = (2.0, 2.0)
FORCED_REST_DURATION: tuple[float, float] = (3.0, 3.0)

HELPER_MIN_HUNGER: float = 0.5
HELPER_MIN_ENERGY: float = 0.4
HELP_RANGE: float = 50.0

SPEAR_URGENCY_THRESHOLD: float = 0.5
CRAFT_AT_STORE_DISTANCE: float = 3.0
FETCH_MIN_ENERGY: float = 0.3
FETCH_FOOD_URGENCY: float = 0.3

FISH_MIN_ENERGY: float = 0.4
FISH_MIN_HUNGER: float = 0.3
FISH_FOOD_URGENCY: float = 0.4
FISHER_CAP_FRACTION: float = 0.3

GATHER_URGENCY_THRESHOLD: float = 0.3
WORKER_CAP_FACTOR: float = 0.6
GATHER_BASE_YIELD: dict[str, int] = {"coconut": 3, "wood": 2, "stone": 2}

PATROL_DISTANCE: float = 10.0
PATROL_TIMEOUT: float = 60.0

# =============================================================================
# FISHING
# =============================================================================
FISHING_BASE_RATE: float = 0.25
FISHING_SKILL_RATE: float = 0.70
FISHING_LOW_ENERGY: float = 0.3
FISHING_LOW_ENERGY_MULT: float = 0.4
FISHING_PERSISTENCE_STEP: float = 0.01
FISHING_PERSISTENCE_CAP: float = 0.05
FISHING_MAX_RATE: float = 0.95
FISHING_CANCEL_ENERGY: float = 0.15
FISHING_CANCEL_HEALTH: float = 0.2
FISHING_THROW_INTERVAL: tuple[float, float] = (3.0, 3.0)
FISHING_MAX_ATTEMPTS_PER_TRIP: int = 6

STRIKING_RANGE: float = 8.0
MAX_CATCH_DEPTH: float = 5.0
FISH_DETECTION_RANGE: float = 120.0
FLEE_DISTANCE: float = 4.0
FLEE_STRENGTH: float = 2.0
FLEE_MAX_SPEED: float = 1.5
FISH_BASE_SPEED: tuple[float, float] = (0.2, 0.3)
FISH_DEPTH_RANGE: tuple[float, float] = (1.0, 4.0)
FISH_OFFSHORE_RANGE: tuple[float, float] = (1.0, 6.0)
FISH_LEASH: float = 3.0
FISH_ESCAPE_DISTANCE: float = 20.0
FISH_TURN_RATE: float = 0.5
FISH_RESPAWN_INTERVAL: float = 20.0
MAX_FISH: int = 20
SHORE_SEARCH_STEP: float = 1.0

# Species by depth band (upper bound of depth, species id)
FISH_SPECIES_BY_DEPTH: list[tuple[float, str]] = [
    (2.0, "mullet"),
    (4.0, "parrotfish"),
    (99.0, "grouper"),
]

# =============================================================================
# SOCIAL
# =============================================================================
RELATIONSHIP_MIN: float = -100.0
RELATIONSHIP_MAX: float = 100.0
FRIEND_THRESHOLD: float = 30.0
ENEMY_THRESHOLD: float = -30.0
FAMILY_BASE: float = 50.0
SIBLING_BASE: float = 30.0
MATE_MIN_RELATIONSHIP: float = 10.0
ALLY_MIN_RELATIONSHIP: float = 20.0
HERO_REPUTATION_BOOST: float = 30.0
LEGEND_STANDING_BONUS: float = 50.0
HERO_STANDING_BONUS: float = 25.0

# =============================================================================
# THREATS
# =============================================================================
DEEP_REEF_DEPTH: float = 3.0
BLOOD_IN_WATER_DURATION: float = 30.0
THREAT_AGGRO_RANGE: float = 30.0
THREAT_DROP_AGGRO_RANGE: float = 50.0
THREAT_ATTACK_RANGE: float = 2.0
THREAT_FLEE_HEALTH_FRACTION: float = 0.2
THREAT_FLEE_SPEED_MULT: float = 1.5
THREAT_DESPAWN_RANGE: float = 100.0
THREAT_PATROL_TIMEOUT: float = 60.0
HUNTER_RALLY_RADIUS: float = 15.0
COMBAT_SUCCESS_CAP: float = 0.9
COMBAT_SKILL_WEIGHT: float = 0.3

# =============================================================================
# HOST / REPORTING
# =============================================================================
MIN_SIMULATION_SPEED: float = 1.0
MAX_SIMULATION_SPEED: float = 50.0
METRICS_SAMPLE_TICKS: int = 20
SANITY_CHECK_TICKS: int = 20
LOG_MAX_ENTRIES: int = 50_000

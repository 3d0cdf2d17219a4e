"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any formula or business rule that references a numeric constant should
import it from here instead of hardcoding.  This avoids drift between
apps that use the same value.

These are *defaults*.  Each app's config dataclass
(``economy.config.EconomyConfig``, ``antibot.config.RiskConfig``,
``racing.balancing.BalancingConfig``) reads overrides from Django settings
and falls back to the values below.
"""

# ── Supply ──────────────────────────────────────────────────────────
# Absolute maximum number of Nitro Points (NP) that may ever be minted.
MAX_SUPPLY: int = 100_000_000

# ── Deflationary split (every NP-denominated spend) ─────────────────
#     10% → burn, 20% → reward pool, remainder (70%) → treasury
BURN_RATE_PERCENT: int = 10
REWARD_POOL_RATE_PERCENT: int = 20
TREASURY_RATE_PERCENT: int = 100 - BURN_RATE_PERCENT - REWARD_POOL_RATE_PERCENT

# ── Emission ────────────────────────────────────────────────────────
DEFAULT_DAILY_EMISSION_LIMIT: int = 50_000
DEFAULT_DECAY_RATE_PERCENT: float = 2.0  # per elapsed week, compounding
MIN_DAILY_EMISSION: int = 5_000
DEFAULT_EMISSION_START_DATE: str = "2026-01-01"
DEFAULT_ACTIVE_PLAYER_BONUS: int = 0
DEFAULT_MAX_PLAYER_BONUS_CAP: int = 0

# ── Economy report ──────────────────────────────────────────────────
HIGH_DEFLATION_BURN_PERCENT: float = 10.0
MODERATE_DEFLATION_BURN_PERCENT: float = 5.0

# ── Risk classification ─────────────────────────────────────────────
# Minimum behavior score for each tier; anything below HIGH is CRITICAL.
RISK_THRESHOLDS: dict[str, int] = {
    "LOW": 70,
    "MEDIUM": 50,
    "HIGH": 30,
}

RISK_REWARD_MULTIPLIERS: dict[str, float] = {
    "LOW": 1.0,
    "MEDIUM": 0.5,
    "HIGH": 0.25,
    "CRITICAL": 0.0,
}

RISK_DAILY_CAPS: dict[str, int] = {
    "LOW": 2000,
    "MEDIUM": 800,
    "HIGH": 200,
    "CRITICAL": 0,
}

RISK_COOLDOWN_SECONDS: dict[str, int] = {
    "LOW": 120,
    "MEDIUM": 300,
    "HIGH": 600,
    "CRITICAL": 3600,
}

# Weights of the four behavior dimensions in the composite score.
BEHAVIOR_DIMENSION_WEIGHTS: dict[str, float] = {
    "interval": 0.25,
    "variability": 0.25,
    "winrate": 0.25,
    "pattern": 0.25,
}

BEHAVIOR_WINDOW_SIZE: int = 20          # most recent race-log entries analysed
BEHAVIOR_MIN_SAMPLES: int = 4           # fewer races → dimension defaults to 100
BEHAVIOR_MIN_WINRATE_SAMPLES: int = 5
INTERVAL_HUMAN_CV: float = 0.5          # CV of race gaps that scores 100
DURATION_HUMAN_CV: float = 0.15         # CV of race durations that scores 100
HUMAN_MAX_WINRATE: float = 0.6          # win rate at or below scores 100
PATTERN_HUMAN_MAX_SHARE: float = 0.3    # share of the modal NP amount that scores 100
DIMENSION_ALERT_SCORE: int = 30         # dimension below this adds a recommendation

BLOCK_SECONDS: int = 24 * 60 * 60
PROFILE_CACHE_SECONDS: int = 5

# ── Reward balancing ────────────────────────────────────────────────
STAT_CAP: int = 100
POWER_SCORE_WEIGHTS: dict[str, float] = {
    "speed": 0.35,
    "acceleration": 0.30,
    "handling": 0.20,
    "durability": 0.15,
}

BASE_DIFFICULTY: float = 50.0
DIFFICULTY_SCALING_FACTOR: float = 0.4
OPPONENT_STAT_SPREAD: float = 10.0
OPPONENT_STAT_MIN: int = 20
OPPONENT_STAT_MAX: int = 100

MAX_HANDLING_EFFICIENCY_BONUS: float = 0.15

ANTI_FARM_MIN_RACES: int = 5
ANTI_FARM_WINRATE_THRESHOLD: float = 0.7
ANTI_FARM_MAX_PENALTY: float = 0.3
ANTI_FARM_MAX_DIFFICULTY_BOOST: float = 15.0
ANTI_FARM_WINDOW: int = 20

# ── Collisions ──────────────────────────────────────────────────────
COLLISION_CHANCE_PERCENT: float = 25.0
COLLISION_MIN_DAMAGE: int = 5
COLLISION_MAX_DAMAGE: int = 20
COLLISION_DURABILITY_LOSS: int = 3

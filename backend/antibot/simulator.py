"""
Bot-attack simulator.

Generates a population of synthetic wallets (humans plus four kinds of
bots), runs each through the pure classifier and reports how much of the
requested NP the risk policy would have withheld.  No database access;
all randomness comes from the injected ``random.Random``.

Used by ``manage.py simulate_bot_attack`` to sanity-check a ``RiskConfig``
before it goes live.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field

from core.domain.numbers import round_half_up

from .behavior import BehaviorDimensions
from .classifier import classify_risk, composite_score, daily_cap, reward_multiplier
from .config import DEFAULT_RISK_CONFIG, RiskConfig
from .models import RiskLevel


class AgentType:
    HUMAN = "HUMAN"
    NAIVE_BOT = "NAIVE_BOT"
    SMART_BOT = "SMART_BOT"
    FARM_BOT = "FARM_BOT"
    HYBRID = "HYBRID"

    ALL = (HUMAN, NAIVE_BOT, SMART_BOT, FARM_BOT, HYBRID)


# Per type: dimension ranges (interval, variability, winrate, pattern),
# races attempted and NP requested per race.
AGENT_PROFILES: dict[str, dict[str, tuple[int, int]]] = {
    AgentType.HUMAN: {
        "interval": (70, 100), "variability": (65, 100), "winrate": (60, 100), "pattern": (70, 100),
        "races": (3, 15), "np_per_race": (20, 80),
    },
    AgentType.NAIVE_BOT: {
        "interval": (0, 15), "variability": (0, 10), "winrate": (5, 25), "pattern": (0, 20),
        "races": (40, 100), "np_per_race": (30, 60),
    },
    AgentType.SMART_BOT: {
        "interval": (25, 55), "variability": (20, 50), "winrate": (30, 55), "pattern": (25, 50),
        "races": (20, 50), "np_per_race": (25, 70),
    },
    AgentType.FARM_BOT: {
        "interval": (0, 10), "variability": (0, 5), "winrate": (10, 30), "pattern": (0, 10),
        "races": (80, 200), "np_per_race": (20, 40),
    },
    AgentType.HYBRID: {
        "interval": (35, 65), "variability": (30, 60), "winrate": (40, 70), "pattern": (35, 65),
        "races": (10, 30), "np_per_race": (25, 60),
    },
}

# Share of the bot population per bot type; HYBRID takes the remainder.
BOT_MIX = {
    AgentType.NAIVE_BOT: 0.35,
    AgentType.FARM_BOT: 0.25,
    AgentType.SMART_BOT: 0.25,
}


@dataclass(frozen=True)
class SimulatedAgent:
    id: int
    type: str
    behavior_score: int
    risk_level: str
    dimensions: BehaviorDimensions
    races_attempted: int
    races_allowed: int
    np_requested: int
    np_received: int
    np_blocked: int
    blocked: bool
    reward_multiplier: float
    daily_cap: int


@dataclass(frozen=True)
class TypeBreakdown:
    type: str
    count: int
    detected: int
    detection_rate: float
    avg_score: int
    np_blocked: int


@dataclass(frozen=True)
class SimulationReport:
    total_bots: int
    total_humans: int
    total_detected: int
    detection_rate: float
    false_positives: int
    false_positive_rate: float
    total_np_requested: int
    total_np_distributed: int
    total_np_blocked: int
    economic_protection: float
    breakdown: list[TypeBreakdown]
    risk_distribution: dict[str, int]
    agents: list[SimulatedAgent] = field(repr=False)
    duration_ms: int = 0


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def generate_agent(
    agent_id: int,
    agent_type: str,
    rng: random.Random,
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> SimulatedAgent:
    ranges = AGENT_PROFILES[agent_type]
    dimensions = BehaviorDimensions(
        interval_score=rng.randint(*ranges["interval"]),
        variability_score=rng.randint(*ranges["variability"]),
        winrate_score=rng.randint(*ranges["winrate"]),
        pattern_score=rng.randint(*ranges["pattern"]),
    )
    score = composite_score(dimensions, config)
    level = classify_risk(score, config)
    races = rng.randint(*ranges["races"])
    requested = races * rng.randint(*ranges["np_per_race"])

    multiplier = reward_multiplier(level, config)
    cap = daily_cap(level, config)
    received = min(round_half_up(requested * multiplier), cap)
    blocked = level == RiskLevel.CRITICAL

    return SimulatedAgent(
        id=agent_id,
        type=agent_type,
        behavior_score=score,
        risk_level=level,
        dimensions=dimensions,
        races_attempted=races,
        races_allowed=0 if blocked else races,
        np_requested=requested,
        np_received=received,
        np_blocked=requested - received,
        blocked=blocked,
        reward_multiplier=multiplier,
        daily_cap=cap,
    )


def simulate_bot_attack(
    total_bots: int = 1000,
    human_ratio: float = 0.20,
    *,
    rng: random.Random | None = None,
    config: RiskConfig = DEFAULT_RISK_CONFIG,
) -> SimulationReport:
    """
    Simulate ``total_bots`` wallets (humans included), ``human_ratio`` of them human.

    A wallet counts as *detected* when it is classified above LOW risk; a
    human classified above LOW is a false positive.
    """
    if total_bots < 0 or not 0 <= human_ratio <= 1:
        raise ValueError("total_bots must be >= 0 and human_ratio within [0, 1].")
    rng = rng or random.Random()
    started = time.perf_counter()

    humans = round_half_up(total_bots * human_ratio)
    bots = total_bots - humans
    plan = [(AgentType.HUMAN, humans)]
    assigned = 0
    for agent_type, share in BOT_MIX.items():
        count = round_half_up(bots * share)
        plan.append((agent_type, count))
        assigned += count
    plan.append((AgentType.HYBRID, max(0, bots - assigned)))

    agents: list[SimulatedAgent] = []
    for agent_type, count in plan:
        for _ in range(count):
            agents.append(generate_agent(len(agents) + 1, agent_type, rng, config))

    human_agents = [a for a in agents if a.type == AgentType.HUMAN]
    bot_agents = [a for a in agents if a.type != AgentType.HUMAN]
    detected = [a for a in bot_agents if a.risk_level != RiskLevel.LOW]
    false_positives = [a for a in human_agents if a.risk_level != RiskLevel.LOW]

    distribution = {level: 0 for level in RiskLevel.values}
    for agent in agents:
        distribution[agent.risk_level] += 1

    breakdown = []
    for agent_type in AgentType.ALL:
        group = [a for a in agents if a.type == agent_type]
        caught = [a for a in group if a.risk_level != RiskLevel.LOW]
        breakdown.append(TypeBreakdown(
            type=agent_type,
            count=len(group),
            detected=len(caught),
            detection_rate=_percent(len(caught), len(group)),
            avg_score=round_half_up(sum(a.behavior_score for a in group) / len(group)) if group else 0,
            np_blocked=sum(a.np_blocked for a in group),
        ))

    bot_requested = sum(a.np_requested for a in bot_agents)
    bot_blocked = sum(a.np_blocked for a in bot_agents)

    return SimulationReport(
        total_bots=len(bot_agents),
        total_humans=len(human_agents),
        total_detected=len(detected),
        detection_rate=_percent(len(detected), len(bot_agents)),
        false_positives=len(false_positives),
        false_positive_rate=_percent(len(false_positives), len(human_agents)),
        total_np_requested=sum(a.np_requested for a in agents),
        total_np_distributed=sum(a.np_received for a in agents),
        total_np_blocked=sum(a.np_blocked for a in agents),
        economic_protection=_percent(bot_blocked, bot_requested),
        breakdown=breakdown,
        risk_distribution=distribution,
        agents=sorted(agents, key=lambda a: a.behavior_score),
        duration_ms=round_half_up((time.perf_counter() - started) * 1000),
    )

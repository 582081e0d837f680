"""
Configuration for evosnake training runs.

Every section is a pydantic model, so out-of-range values are rejected when
the config is built, long before the first generation is evaluated. Use
build_config() to get InvalidConfiguration instead of pydantic's own error.
"""

from __future__ import annotations

import multiprocessing
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidConfiguration

# 8 rays x (wall, food, body) + head direction one-hot + tail direction one-hot
INPUT_SIZE = 32
# One output per absolute direction: UP, RIGHT, DOWN, LEFT
OUTPUT_SIZE = 4
DEFAULT_TOPOLOGY = (INPUT_SIZE, 20, 12, OUTPUT_SIZE)


def default_num_workers(population_size=500):
    # Leave one core free, scale the cap with population size
    cpu_count = multiprocessing.cpu_count()
    if population_size >= 500:
        return max(1, min(cpu_count, 16))
    return max(1, min(max(2, cpu_count - 1), 8))


class NetworkConfig(BaseModel):
    """Layer sizes of the feed-forward network, input first."""

    model_config = ConfigDict(frozen=True)

    topology: Tuple[int, ...] = Field(default=DEFAULT_TOPOLOGY, min_length=2)

    @field_validator("topology")
    @classmethod
    def _validate_topology(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if any(size < 1 for size in v):
            raise ValueError(f"topology {list(v)} has a zero-sized layer")
        return v


class GameConfig(BaseModel):
    """Board and rules of a single headless game."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=10, ge=3, le=256)
    height: int = Field(default=10, ge=3, le=256)
    initial_length: int = Field(default=3, ge=1)
    start_position: Optional[Tuple[int, int]] = Field(
        default=None,
        description="Head cell at the start of every game (None = board centre)",
    )
    max_steps_without_food: Optional[int] = Field(
        default=None,
        gt=0,
        description="Starvation cutoff (None = starvation_factor * board cells)",
    )
    starvation_factor: float = Field(default=1.5, gt=0)

    @model_validator(mode="after")
    def _validate_start(self) -> "GameConfig":
        x, y = self.head_start
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"start_position {(x, y)} is outside the {self.width}x{self.height} board")
        # The body trails to the left of the head
        if x - (self.initial_length - 1) < 0:
            raise ValueError(
                f"snake of length {self.initial_length} does not fit left of start_position {(x, y)}"
            )
        return self

    @property
    def head_start(self) -> Tuple[int, int]:
        if self.start_position is not None:
            return tuple(self.start_position)
        return (self.width // 2, self.height // 2)

    @property
    def starvation_limit(self) -> int:
        if self.max_steps_without_food is not None:
            return self.max_steps_without_food
        return max(1, int(self.starvation_factor * self.width * self.height))


class FitnessConfig(BaseModel):
    """Constants of the fitness formula.

    fitness = max(0, step_weight * steps
                     + food_weight * food ** food_exponent
                     - idle_penalty * steps_since_last_food
                     - timeout_penalty * timed_out)
    """

    model_config = ConfigDict(frozen=True)

    step_weight: float = Field(default=1.0, ge=0)
    food_weight: float = Field(default=500.0, gt=0)
    food_exponent: float = Field(default=2.0, ge=1)
    idle_penalty: float = Field(default=0.5, ge=0)
    timeout_penalty: float = Field(default=0.0, ge=0)
    games_per_evaluation: int = Field(default=1, ge=1, le=100)


class EvolutionConfig(BaseModel):
    """Genetic algorithm hyperparameters."""

    model_config = ConfigDict(frozen=True)

    population_size: int = Field(default=500, ge=2)
    generations: int = Field(default=2000, ge=1)
    crossover_rate: float = Field(default=0.9, ge=0, le=1)
    mutation_rate: float = Field(default=0.3, ge=0, le=1, description="Per-weight mutation probability")
    mutation_range: float = Field(default=0.3, ge=0, description="Std of the gaussian mutation noise")
    crossover_type: Literal["single_point", "sbx", "mixed"] = "single_point"
    sbx_eta: float = Field(default=100.0, gt=0)
    gene_min: float = -1.0
    gene_max: float = 1.0
    seed: Optional[int] = Field(default=None, ge=0, description="Seed of the evolution RNG")
    evaluation_seed: Optional[int] = Field(default=None, ge=0, description="Seed of the game RNGs")
    num_workers: Optional[int] = Field(default=None, ge=1, le=256)
    executor: Literal["thread", "process"] = "thread"
    late_generation_fraction: float = Field(default=0.95, ge=0, le=1)
    log_interval: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _validate_gene_range(self) -> "EvolutionConfig":
        if self.gene_min >= self.gene_max:
            raise ValueError(f"gene_min ({self.gene_min}) must be below gene_max ({self.gene_max})")
        return self

    @property
    def workers(self) -> int:
        return self.num_workers or default_num_workers(self.population_size)


class TrainingConfig(BaseModel):
    """Everything a training run needs."""

    model_config = ConfigDict(frozen=True)

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    game: GameConfig = Field(default_factory=GameConfig)
    fitness: FitnessConfig = Field(default_factory=FitnessConfig)
    evolution: EvolutionConfig = Field(default_factory=EvolutionConfig)

    @model_validator(mode="after")
    def _validate_io_sizes(self) -> "TrainingConfig":
        topology = self.network.topology
        if topology[0] != INPUT_SIZE:
            raise ValueError(f"network input must have {INPUT_SIZE} neurons, got {topology[0]}")
        if topology[-1] != OUTPUT_SIZE:
            raise ValueError(f"network output must have {OUTPUT_SIZE} neurons, got {topology[-1]}")
        return self


_SECTIONS = {
    "network": NetworkConfig,
    "game": GameConfig,
    "fitness": FitnessConfig,
    "evolution": EvolutionConfig,
}


def validate_config(model, **values):
    # Build any config model, turning pydantic errors into InvalidConfiguration
    try:
        return model(**values)
    except ValidationError as e:
        raise InvalidConfiguration(str(e)) from e


def build_config(**overrides) -> TrainingConfig:
    """Build a TrainingConfig from flat keyword overrides.

    Each keyword is routed to the section that declares it, e.g.
    build_config(population_size=50, width=12, food_weight=200).
    """
    sections = {name: {} for name in _SECTIONS}
    for key, value in overrides.items():
        for name, model in _SECTIONS.items():
            if key in model.model_fields:
                sections[name][key] = value
                break
        else:
            raise InvalidConfiguration(f"Unknown configuration option: {key}")

    return validate_config(
        TrainingConfig,
        **{name: validate_config(_SECTIONS[name], **values) for name, values in sections.items()},
    )

from __future__ import annotations

from abc import ABC, abstractmethod
import math
import uuid

from pydantic import BaseModel, ConfigDict, Field


class Objective(BaseModel):
    """Identifies one fitness function and its optimisation direction."""

    id: str = Field(..., min_length=1, description="Unique objective identifier")
    maximize: bool = Field(
        default=False, description="True if higher fitness values are better"
    )

    model_config = ConfigDict(frozen=True)


class Goal(BaseModel):
    """A unit of coverage (one branch, one mutant, one line, ...)."""

    id: str = Field(..., min_length=1, description="Stable goal identifier")
    covered: bool = Field(
        default=False, description="Set once a solution reaches distance 0"
    )

    @property
    def objective(self) -> Objective:
        """The minimising objective measuring the distance to this goal."""
        return Objective(id=self.id, maximize=False)


class Solution(BaseModel, ABC):
    """Opaque, cloneable candidate evaluated by the search.

    Only the engine-visible state lives here; concrete subclasses add their
    own payload (a test case, a test suite, ...) as extra pydantic fields.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique solution identifier",
    )
    fitness_values: dict[str, float] = Field(
        default_factory=dict, description="Objective id -> fitness value"
    )
    rank: int = Field(default=0, ge=0, description="Front index, 0 = best")
    distance: float = Field(
        default=math.inf, description="Crowding / novelty proxy"
    )
    age: int = Field(default=0, ge=0, description="Generation of last change")
    changed: bool = Field(
        default=True, description="Set by variation, cleared by evaluation"
    )
    evaluation_failed: bool = Field(
        default=False, description="Last oracle call could not measure it"
    )
    novelty: float = Field(default=0.0, description="Last computed novelty score")
    covered_goals: set[str] = Field(
        default_factory=set, description="Goals reached by the last execution"
    )

    @abstractmethod
    def mutate(self) -> None:
        """Mutate in place; must set ``changed`` when the structure changed."""

    @abstractmethod
    def cross_over(self, other: Solution, position1: int, position2: int) -> None:
        """Replace this solution's tail from ``position1`` with ``other``'s tail
        from ``position2``. May raise ConstructionFailedError."""

    @abstractmethod
    def size(self) -> int:
        """Structural size used by bloat control and length objectives."""

    def num_tests(self) -> int:
        return 1

    def num_exceptions(self) -> int:
        return 0

    def max_length(self) -> int:
        return self.size()

    def clone(self) -> Solution:
        """Return a fully independent deep copy with a fresh identifier."""
        copy = self.model_copy(deep=True)
        copy.id = str(uuid.uuid4())
        return copy

    def get_fitness(self, objective_id: str) -> float:
        if objective_id not in self.fitness_values:
            raise KeyError(f"Missing fitness for objective '{objective_id}' in solution {self.id}")
        return self.fitness_values[objective_id]

    def set_fitness(self, objective_id: str, value: float) -> None:
        self.fitness_values[objective_id] = float(value)

    def has_fitness(self, objective_id: str) -> bool:
        return objective_id in self.fitness_values

    def update_age(self, generation: int) -> None:
        self.age = generation

    @property
    def short_id(self) -> str:
        return self.id[:8]


class SolutionFactory(ABC):
    """Creates fresh random solutions for the initial population."""

    @abstractmethod
    def create(self) -> Solution:
        ...

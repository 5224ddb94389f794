from evosearch.evolution.topology.neighbourhood import (
    NeighbourhoodGrid,
    NeighbourhoodModel,
    Position,
)

__all__ = ["NeighbourhoodGrid", "NeighbourhoodModel", "Position"]

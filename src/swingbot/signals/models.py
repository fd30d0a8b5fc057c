"""Signal data models."""

from enum import Enum


class CrossDirection(str, Enum):
    """Direction of a confirmed moving-average crossover."""

    UP = "up"
    DOWN = "down"

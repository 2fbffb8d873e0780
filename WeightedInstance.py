from __future__ import annotations

import numpy as np
from capymoa.instance import LabeledInstance


class WeightedInstance:
    """
    An independent copy of a labelled capymoa instance together with the weight one
    learner should give it. The feature array is copied, so a learner that mutates its
    copy never changes the original record or another learner's view.
    """

    def __init__(self, instance: LabeledInstance, weight: float = 1.0):
        self.instance = LabeledInstance.from_array(instance.schema, np.array(instance.x, copy=True), instance.y_index)
        self.weight = float(weight)

    @property
    def schema(self):
        return self.instance.schema

    @property
    def x(self) -> np.ndarray:
        return self.instance.x

    @property
    def y_index(self) -> int:
        return self.instance.y_index

    @property
    def y_label(self) -> str:
        return self.instance.y_label

    def set_weight(self, weight: float):
        self.weight = float(weight)

    def copy(self) -> WeightedInstance:
        return WeightedInstance(self.instance, self.weight)

    def __repr__(self):
        return f"WeightedInstance(y={self.y_label!r}, weight={self.weight:.4f}, x={self.x})"


def instance_weight(instance) -> float:
    """Weight of a (possibly weighted) instance; plain capymoa instances count once."""
    return float(getattr(instance, "weight", 1.0))

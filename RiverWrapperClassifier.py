from __future__ import annotations

import copy
import inspect
import logging
from typing import Any, Dict, List, Optional

import numpy as np
from capymoa.base import Classifier
from capymoa.instance import Instance, LabeledInstance
from capymoa.stream import Schema
from river.base import Classifier as RiverClassifier

from WeightedInstance import instance_weight


def schema_feature_names(schema: Schema) -> List[str]:
    """Input feature names in the order of `instance.x`, read from the MOA header."""
    moa_header = schema.get_moa_header()
    return [moa_header.attribute(i).name() for i in range(schema.get_num_attributes())]


def _accepts_weight(learn_one) -> bool:
    params = inspect.signature(learn_one).parameters.values()
    # Pipelines and other wrappers forward **params to the final learner
    return any(p.name == "w" or p.kind is inspect.Parameter.VAR_KEYWORD for p in params)


class RiverWrapperClassifier(Classifier):
    """
    A wrapper to make a River classifier compatible with CapyMOA and usable as an ensemble member.
    The instance weight is passed to `learn_one` as `w`; the probability dict returned by
    `predict_proba_one` is laid out as a vote vector in the schema's label order.
    """

    def __init__(self, river_model: RiverClassifier, schema: Schema, random_seed: int = 1):
        super().__init__(schema=schema, random_seed=random_seed)

        if not isinstance(river_model, RiverClassifier):
            raise TypeError("river_model must be an instance of river.base.Classifier")

        self.river_model = river_model
        self._class_labels = list(schema.get_label_values())
        self._num_classes = len(self._class_labels)
        self._class_to_index = {label: i for i, label in enumerate(self._class_labels)}
        self._feature_names = schema_feature_names(schema)
        self._accepts_weight = _accepts_weight(river_model.learn_one)

    def _instance_to_river_dict(self, instance: Instance) -> Dict[str, Any]:
        features_array = instance.x
        if len(self._feature_names) != len(features_array):
            logging.warning(f"Feature names count ({len(self._feature_names)}) "
                            f"!= feature values count ({len(features_array)}). Instance: {instance}")
        return {name: float(v) for name, v in zip(self._feature_names, features_array)}

    def train(self, instance: LabeledInstance):
        weight = instance_weight(instance)
        if weight == 0:
            return
        x_river = self._instance_to_river_dict(instance)
        y_river = instance.y_label
        if self._accepts_weight:
            self.river_model.learn_one(x=x_river, y=y_river, w=weight)
        else:
            # No sample weights: fall back to repeating the example, as online bagging does
            for _ in range(int(round(weight))):
                self.river_model.learn_one(x=x_river, y=y_river)

    def predict_proba(self, instance: Instance) -> np.ndarray:
        """
        Makes a prediction for a single instance using the River model.
        Returns the probability array; all zeros if the model has nothing to say yet.
        """
        proba_array = np.zeros(self._num_classes, dtype=float)
        proba_dict = self.river_model.predict_proba_one(self._instance_to_river_dict(instance))
        for label, proba in (proba_dict or {}).items():
            if label in self._class_to_index:
                proba_array[self._class_to_index[label]] = proba
        return proba_array

    def predict(self, instance: Instance) -> Optional[int]:
        proba = self.predict_proba(instance)
        return int(np.argmax(proba)) if proba.sum() > 0 else None

    def reset(self):
        self.river_model = self.river_model.clone()

    def clone(self) -> RiverWrapperClassifier:
        return RiverWrapperClassifier(copy.deepcopy(self.river_model), self.schema, self.random_seed)

    def __str__(self) -> str:
        return f"RiverWrapper({self.river_model})"

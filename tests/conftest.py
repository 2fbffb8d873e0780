import copy
import pathlib
import sys

import numpy as np
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from capymoa.base import Classifier
from capymoa.instance import LabeledInstance
from capymoa.stream import Schema

from WeightedInstance import instance_weight

TOY_ARFF = """@RELATION toy

@ATTRIBUTE a NUMERIC
@ATTRIBUTE b NUMERIC
@ATTRIBUTE class {no,yes}

@DATA
0.1,0.3,no
0.9,0.7,yes
0.2,0.1,no
0.7,0.8,yes
0.8,0.9,yes
0.3,0.2,no
0.6,0.9,yes
"""


class RecordingLearner(Classifier):
    """Remembers every weight it was trained with and votes with its weighted class counts."""

    def __init__(self, schema):
        super().__init__(schema=schema)
        self.weights = []
        self.counts = np.zeros(schema.get_num_classes())

    def reset(self):
        self.weights = []
        self.counts = np.zeros(self.schema.get_num_classes())

    def train(self, instance):
        weight = instance_weight(instance)
        self.weights.append(weight)
        self.counts[instance.y_index] += weight

    def predict_proba(self, instance):
        return self.counts.copy()

    def predict(self, instance):
        return int(np.argmax(self.counts)) if self.counts.sum() > 0 else None

    def clone(self):
        twin = RecordingLearner(self.schema)
        twin.weights = list(self.weights)
        twin.counts = self.counts.copy()
        return twin

    def __str__(self):
        return "RecordingLearner"


class FixedVoteLearner(Classifier):
    def __init__(self, schema, votes):
        super().__init__(schema=schema)
        self.votes = list(votes)

    def train(self, instance):
        pass

    def predict_proba(self, instance):
        return np.array(self.votes, dtype=float)

    def predict(self, instance):
        return int(np.argmax(self.votes)) if sum(self.votes) > 0 else None

    def __str__(self):
        return f"FixedVoteLearner({self.votes})"


@pytest.fixture
def binary_schema():
    return Schema.from_custom(
        features=["a", "b", "class"],
        target="class",
        categories={"class": ["0", "1"]},
        name="toy",
    )


@pytest.fixture
def make_instance(binary_schema):
    def _make(y_index, a=0.0, b=0.0):
        return LabeledInstance.from_array(binary_schema, np.array([a, b]), y_index)
    return _make


@pytest.fixture
def threshold_stream(binary_schema):
    """Instances labelled 1 when `a` > 0.5, with `a` and `b` uniform in [0, 1)."""
    def _stream(n, seed=7):
        rng = np.random.default_rng(seed)
        values = rng.random((n, 2))
        return [LabeledInstance.from_array(binary_schema, row, int(row[0] > 0.5)) for row in values]
    return _stream


@pytest.fixture
def toy_arff(tmp_path):
    path = tmp_path / "toy.arff"
    path.write_text(TOY_ARFF)
    return str(path)

from __future__ import annotations

from typing import Hashable, Iterable, Iterator, Sequence, Tuple

import numpy as np
from capymoa.instance import LabeledInstance
from capymoa.stream import Schema


def river_to_capymoa_stream(
    dataset: Iterable[Tuple[dict, Hashable]],
    labels: Sequence[Hashable],
    name: str = "river",
    target: str = "class",
) -> Tuple[Schema, Iterator[LabeledInstance]]:
    """
    Adapts a river dataset (any iterable of `(x, y)` pairs, e.g. `synth.SEA(seed=1).take(1000)`)
    to capymoa instances. Features are read from the first example and must be numeric.
    CapyMOA class labels are strings, so each label is stored as `str(label)`.

    Returns:
        (schema, instances)
    """
    iterator = iter(dataset)
    try:
        x_first, y_first = next(iterator)
    except StopIteration:
        raise ValueError("Stream is empty") from None

    feature_names = list(x_first.keys())
    schema = Schema.from_custom(
        features=feature_names + [target],
        target=target,
        categories={target: [str(label) for label in labels]},
        name=name,
    )
    label_to_index = {str(label): i for i, label in enumerate(labels)}

    def to_instance(x: dict, y) -> LabeledInstance:
        if str(y) not in label_to_index:
            raise ValueError(f"Label {y!r} is not one of {list(labels)}")
        x_array = np.array([float(x[f]) for f in feature_names])
        return LabeledInstance.from_array(schema, x_array, label_to_index[str(y)])

    def instances() -> Iterator[LabeledInstance]:
        yield to_instance(x_first, y_first)
        for x, y in iterator:
            yield to_instance(x, y)

    return schema, instances()

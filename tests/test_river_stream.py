import pytest

from River_to_capymoa_stream import river_to_capymoa_stream


def test_river_pairs_become_labelled_instances():
    data = [({"x": 1.0, "z": 0.5}, True), ({"x": -1.0, "z": 0.0}, False), ({"x": 2.0, "z": 1.5}, True)]
    schema, stream = river_to_capymoa_stream(data, labels=[False, True], name="pairs")
    instances = list(stream)

    assert schema.get_num_classes() == 2
    assert list(schema.get_label_values()) == ["False", "True"]
    assert [inst.y_index for inst in instances] == [1, 0, 1]
    assert list(instances[2].x) == [2.0, 1.5]


def test_unknown_label_is_rejected():
    _, stream = river_to_capymoa_stream([({"x": 1.0}, 3)], labels=[0, 1])
    with pytest.raises(ValueError):
        next(stream)


def test_empty_stream_is_rejected():
    with pytest.raises(ValueError):
        river_to_capymoa_stream([], labels=[0, 1])

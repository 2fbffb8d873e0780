import time
from typing import Iterable, Iterator, Optional, Union

import numpy as np
from capymoa.base import Classifier
from capymoa.evaluation.evaluation import (
    ClassificationEvaluator,
    ClassificationWindowedEvaluator,
    PrequentialResults,
)
from capymoa.instance import LabeledInstance
from capymoa.stream import Stream
from tqdm.auto import tqdm


def _instances(stream: Union[Stream, Iterable[LabeledInstance]], restart_stream: bool) -> Iterator[LabeledInstance]:
    if isinstance(stream, Stream):
        if restart_stream:
            stream.restart()
        while stream.has_more_instances():
            yield stream.next_instance()
    else:
        yield from stream


def prequential_evaluation_proba(
    stream: Union[Stream, Iterable[LabeledInstance]],
    learner: Classifier,
    max_instances: Optional[int] = None,
    window_size: int = 1000,
    store_predictions: bool = False,
    store_y: bool = False,
    restart_stream: bool = True,
    progress_bar: Union[bool, tqdm] = False,
) -> PrequentialResults:
    """
    Run and evaluate a learner on a stream using prequential (test-then-train) evaluation.
    The learner's `predict_proba` vector is turned into a class index with argmax; a vector
    of all zeros (every model abstained) is passed to the evaluators as no prediction.

    `stream` is a capymoa Stream or any iterable of labelled instances; the evaluators
    use the learner's schema.
    """
    if window_size is None or window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")

    schema = learner.schema
    predictions_to_store = [] if store_predictions else None
    ground_truth_y_to_store = [] if store_y else None

    start_wallclock_time = time.time()
    start_cpu_time = time.process_time()

    evaluator_cumulative = ClassificationEvaluator(schema=schema)
    evaluator_windowed = ClassificationWindowedEvaluator(schema=schema, window_size=window_size)

    if isinstance(progress_bar, tqdm):
        actual_progress_bar = progress_bar
    elif progress_bar:
        actual_progress_bar = tqdm(total=max_instances, desc="Eval")
    else:
        actual_progress_bar = None

    instances_processed = 0
    for instance in _instances(stream, restart_stream):
        if max_instances is not None and instances_processed >= max_instances:
            break
        instances_processed += 1

        # Predict -> Evaluate -> Train
        prediction_output = learner.predict_proba(instance)
        y_pred = int(np.argmax(prediction_output)) if prediction_output.sum() > 0 else None
        y_true = instance.y_index

        evaluator_cumulative.update(y_true, y_pred)
        evaluator_windowed.update(y_true, y_pred)

        learner.train(instance)

        if predictions_to_store is not None:
            predictions_to_store.append(prediction_output)
        if ground_truth_y_to_store is not None:
            ground_truth_y_to_store.append(y_true)

        if actual_progress_bar is not None:
            actual_progress_bar.update(1)

    if actual_progress_bar is not None:
        actual_progress_bar.close()

    elapsed_wallclock_time = time.time() - start_wallclock_time
    elapsed_cpu_time = time.process_time() - start_cpu_time

    # Flush the last partial window
    if (
        evaluator_windowed.get_instances_seen() > 0
        and evaluator_windowed.get_instances_seen() % window_size != 0
    ):
        evaluator_windowed.result_windows.append(evaluator_windowed.metrics())

    return PrequentialResults(
        learner=str(learner),
        stream=str(stream) if isinstance(stream, Stream) else "instances",
        wallclock=elapsed_wallclock_time,
        cpu_time=elapsed_cpu_time,
        max_instances=max_instances,
        cumulative_evaluator=evaluator_cumulative,
        windowed_evaluator=evaluator_windowed,
        ground_truth_y=ground_truth_y_to_store,
        predictions=predictions_to_store,
    )

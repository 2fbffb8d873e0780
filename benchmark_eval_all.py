import logging
import os

import pandas as pd
from capymoa.stream import ARFFStream
from river import tree

from BayesianBagging import BayesianBaggingClassifier
from Prequential_evaluation_proba import prequential_evaluation_proba
from RiverWrapperClassifier import RiverWrapperClassifier


def run_evaluation(arff_file_path: str, output_dir: str, sampler: str = "adaptive",
                   ensemble_size: int = 10, random_seed: int = 42, window_size: int = 1000,
                   max_instances: int = 1_000_000_000, progress_bar: bool = True) -> pd.DataFrame:
    """
    Run a prequential evaluation of a Bayesian bagging ensemble on a single ARFF file,
    save windowed metrics, and return cumulative metrics as a DataFrame.

    Parameters:
    - arff_file_path: Path to the .arff data file.
    - output_dir: Directory where window CSV results will be written.
    - sampler: Weight sampler of the ensemble ("adaptive" or "class_count").
    - ensemble_size: Number of Hoeffding trees in the bag.
    - random_seed: Master seed of the ensemble.
    - window_size: Size of the window for windowed metrics.
    - max_instances: Maximum number of instances to process.
    - progress_bar: Show progress bar if True.
    """
    logging.info(f"Processing stream: {arff_file_path}")

    stream = ARFFStream(arff_file_path)
    schema = stream.get_schema()

    model = BayesianBaggingClassifier(
        schema=schema,
        base_learner=RiverWrapperClassifier(tree.HoeffdingTreeClassifier(grace_period=50, delta=0.01), schema),
        ensemble_size=ensemble_size,
        sampler=sampler,
        random_seed=random_seed,
    )

    results = prequential_evaluation_proba(
        stream=stream,
        learner=model,
        window_size=window_size,
        max_instances=max_instances,
        progress_bar=progress_bar,
    )

    base_name = os.path.splitext(os.path.basename(arff_file_path))[0]
    model_name = f"BayesianBagging_{sampler}"
    cumulative = results.cumulative
    metrics = {
        "Learner": model_name,
        "Stream": base_name,
        "Instances": cumulative.get_instances_seen(),
        "Wallclock Time (s)": results.wallclock(),
        "Cumulative Accuracy": cumulative.accuracy(),
        "Cumulative Kappa": cumulative.kappa(),
        **model.model_measurements(),
    }

    windows_csv = os.path.join(output_dir, f"windows_{model_name}_{base_name}.csv")
    results.metrics_per_window().to_csv(windows_csv, index=False)
    logging.info(f"Saved windowed metrics to {windows_csv}")

    return pd.DataFrame([metrics])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    data_dir = "./data"
    output_dir = "./results"
    os.makedirs(output_dir, exist_ok=True)

    dataset_files = [
        "AGR_a.arff", "AGR_g.arff", "HYPER.arff", "LED_a.arff", "LED_g.arff",
        "RBF_f.arff", "RBF_m.arff", "RTG.arff", "SEA_a.arff", "SEA_g.arff"
    ]

    all_metrics: list[pd.DataFrame] = []
    for sampler in ("adaptive", "class_count"):
        for fname in dataset_files:
            file_path = os.path.join(data_dir, fname)
            if not os.path.isfile(file_path):
                logging.warning(f"File not found: {file_path}")
                continue
            all_metrics.append(run_evaluation(file_path, output_dir, sampler=sampler))

    if all_metrics:
        combined_csv = os.path.join(output_dir, "metrics_BayesianBagging_all_streams.csv")
        pd.concat(all_metrics, ignore_index=True).to_csv(combined_csv, index=False)
        logging.info(f"Saved combined cumulative metrics to {combined_csv}")
    else:
        logging.warning("No metrics to combine.")

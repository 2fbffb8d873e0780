import os

import pandas as pd

from benchmark_eval_all import run_evaluation


def test_run_evaluation_writes_windows_and_returns_one_row(toy_arff, tmp_path):
    output_dir = tmp_path / "results"
    output_dir.mkdir()

    df = run_evaluation(toy_arff, str(output_dir), sampler="class_count", ensemble_size=2,
                        window_size=3, progress_bar=False)

    assert len(df) == 1
    row = df.iloc[0]
    assert row["Learner"] == "BayesianBagging_class_count"
    assert row["Stream"] == "toy"
    assert row["Instances"] == 7
    assert row["ensemble size"] == 2

    windows_csv = output_dir / "windows_BayesianBagging_class_count_toy.csv"
    assert os.path.isfile(windows_csv)
    assert len(pd.read_csv(windows_csv)) == 3

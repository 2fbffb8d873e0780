from __future__ import annotations

import abc
import copy
import logging
import math
import typing

import numpy as np
from capymoa.base import Classifier
from capymoa.instance import Instance, LabeledInstance
from capymoa.stream import Schema
from river.tree import HoeffdingTreeClassifier

from RiverWrapperClassifier import RiverWrapperClassifier
from WeightedInstance import WeightedInstance

LAPLACE = 1.0


# ================================================================
# Running class statistics
# ================================================================
class RunningClassStats:
    """
    Per-class frequency counters and a total instance counter, both starting at the
    Laplace floor so no class ever has a zero frequency.
    """

    def __init__(self, n_classes: int):
        if n_classes < 1:
            raise ValueError(f"n_classes must be >= 1, got {n_classes}")
        self.class_freqs = np.full(n_classes, LAPLACE, dtype=float)
        self.total = LAPLACE

    @property
    def n_classes(self) -> int:
        return len(self.class_freqs)

    def update(self, class_index: int):
        self.total += 1
        self.class_freqs[class_index] += 1

    def __repr__(self):
        return f"RunningClassStats(freqs={self.class_freqs.tolist()}, total={self.total})"


# ================================================================
# Weight samplers
# ================================================================
class GammaParams(typing.NamedTuple):
    shape: float
    scale: float

    @property
    def mean(self) -> float:
        return self.shape * self.scale

    @property
    def variance(self) -> float:
        return self.shape * self.scale ** 2


# Unit mean, unit variance, no adaptive scaling
DEFAULT_GAMMA = GammaParams(shape=1.0, scale=1.0)


class WeightSampler(abc.ABC):
    """Turns the current class statistics into the Gamma distribution one instance weight is drawn from."""

    @abc.abstractmethod
    def get_distribution(self, stats: RunningClassStats, class_index: int) -> GammaParams:
        ...

    def reset(self):
        pass


class AdaptiveWeightSampler(WeightSampler):
    """
    Gamma(k * f_c / N, N / (k * f_c)) where f_c is the frequency of the instance's class
    and N the total count.

    shape * scale is always 1, so weights are unbiased whatever the class balance, while
    the variance N / (k^2 * f_c) grows for rare classes. Minority examples get strongly
    perturbed across ensemble members and majority examples settle near a weight of 1.
    """

    def __init__(self, k: float = 1.0):
        if not k > 0:
            raise ValueError(f"k must be positive, got {k}")
        self.k = k

    def get_distribution(self, stats: RunningClassStats, class_index: int) -> GammaParams:
        freq = stats.class_freqs[class_index]
        shape = (self.k * freq) / stats.total
        if not (math.isfinite(shape) and shape > 0):
            return DEFAULT_GAMMA
        return GammaParams(shape=shape, scale=stats.total / (self.k * freq))


class ClassCountWeightSampler(WeightSampler):
    """Gamma(n_classes, 1), fixed on first use and shared by every model and instance afterwards."""

    def __init__(self):
        self._params: GammaParams | None = None

    def get_distribution(self, stats: RunningClassStats, class_index: int) -> GammaParams:
        if self._params is None:
            self._params = GammaParams(shape=float(stats.n_classes), scale=1.0)
        return self._params

    def reset(self):
        self._params = None


# ================================================================
# Ensemble
# ================================================================
class BayesianBaggingClassifier(Classifier):
    """
    Online Bayesian bagging.

    Every ensemble member sees every instance, but with its own weight drawn from a
    Gamma distribution given by the configured sampler. This replaces the Poisson(1)
    resampling of online bagging with continuous Bayesian-bootstrap weights.

    Args:
        schema: Schema of the stream.
        base_learner: Template cloned once per ensemble member. Defaults to a wrapped
            river Hoeffding tree.
        ensemble_size: Number of models in the bag.
        sampler: "adaptive" (weights adapt to class frequencies) or "class_count"
            (fixed Gamma(n_classes, 1)).
        k: Concentration constant of the adaptive sampler.
        random_seed: Master seed. Each model gets its own generator split off from it.
        verbose: Log class frequencies, Gamma parameters and sampled weights.
    """

    _SAMPLER_ADAPTIVE = "adaptive"
    _SAMPLER_CLASS_COUNT = "class_count"
    _VALID_SAMPLERS = {_SAMPLER_ADAPTIVE, _SAMPLER_CLASS_COUNT}

    is_randomizable = True

    def __init__(
        self,
        schema: Schema,
        base_learner: Classifier | None = None,
        ensemble_size: int = 10,
        sampler: str = "adaptive",
        k: float = 1.0,
        random_seed: int = 1,
        verbose: bool = False,
    ):
        super().__init__(schema=schema, random_seed=random_seed)
        if base_learner is None:
            base_learner = RiverWrapperClassifier(HoeffdingTreeClassifier(), schema)
        if not isinstance(base_learner, Classifier):
            raise TypeError(f"base_learner must be a capymoa Classifier, got {type(base_learner).__name__}")
        if ensemble_size < 1:
            raise ValueError(f"ensemble_size must be >= 1, got {ensemble_size}")
        if sampler not in self._VALID_SAMPLERS:
            raise ValueError(f"Invalid sampler: {sampler}. Valid options are: {sorted(self._VALID_SAMPLERS)}")

        self.base_learner = base_learner
        self.ensemble_size = ensemble_size
        self.sampler = sampler
        self.k = k
        self.verbose = verbose

        if sampler == self._SAMPLER_ADAPTIVE:
            self._sampler: WeightSampler = AdaptiveWeightSampler(k=k)
        else:
            self._sampler = ClassCountWeightSampler()

        self._ensemble: list[Classifier] | None = None
        self._stats: RunningClassStats | None = None
        self._rngs: list[np.random.Generator] = []

    def _clone_member(self, learner: Classifier) -> Classifier:
        if callable(getattr(learner, "clone", None)):
            return learner.clone()
        # The schema wraps a MOA header and is shared, never copied
        return copy.deepcopy(learner, memo={id(self.schema): self.schema})

    def reset(self):
        if callable(getattr(self.base_learner, "reset", None)):
            self.base_learner.reset()
        self._ensemble = [self._clone_member(self.base_learner) for _ in range(self.ensemble_size)]
        self._stats = RunningClassStats(self.schema.get_num_classes())
        self._sampler.reset()
        # One independent stream per model, all derived from the master seed
        children = np.random.SeedSequence(self.random_seed).spawn(self.ensemble_size)
        self._rngs = [np.random.default_rng(child) for child in children]

    def train(self, instance: LabeledInstance):
        if self._ensemble is None:
            self.reset()

        class_index = instance.y_index
        for i, model in enumerate(self._ensemble):
            params = self._sampler.get_distribution(self._stats, class_index)
            weight = self._rngs[i].gamma(params.shape, params.scale)

            if self.verbose:
                logging.info(
                    f"model {i}: freqs={self._stats.class_freqs.tolist()} "
                    f"freq[{class_index}]={self._stats.class_freqs[class_index]} total={self._stats.total} "
                    f"shape={params.shape:.6f} scale={params.scale:.6f} "
                    f"E[W]={params.mean:.6f} Var[W]={params.variance:.6f} weight={weight:.6f}"
                )

            model.train(WeightedInstance(instance, weight))

        self._stats.update(class_index)

    def predict_proba(self, instance: Instance) -> np.ndarray:
        """
        Sum of the members' normalised votes. Members whose votes sum to zero abstain and
        are left out, so the result is not normalised and may be all zeros.
        """
        combined = np.zeros(self.schema.get_num_classes(), dtype=float)
        if self._ensemble is None:
            return combined
        for model in self._ensemble:
            vote = np.asarray(model.predict_proba(instance), dtype=float)
            total = vote.sum()
            if total > 0:
                combined += vote / total
        return combined

    def predict(self, instance: Instance) -> int | None:
        votes = self.predict_proba(instance)
        return int(np.argmax(votes)) if votes.sum() > 0 else None

    def clone(self) -> BayesianBaggingClassifier:
        return copy.deepcopy(self, memo={id(self.schema): self.schema})

    @property
    def sub_classifiers(self) -> tuple[Classifier, ...]:
        if self._ensemble is None:
            raise RuntimeError("Ensemble is not initialised; call reset() or train() first.")
        return tuple(self._ensemble)

    @property
    def class_freqs(self) -> np.ndarray | None:
        """Class frequencies including the Laplace floor; None until the first reset."""
        return None if self._stats is None else self._stats.class_freqs.copy()

    @property
    def n_instances(self) -> float | None:
        """Instances seen plus the Laplace floor, so 1 right after reset; None until the first reset."""
        return None if self._stats is None else self._stats.total

    def model_measurements(self) -> dict[str, int]:
        return {"ensemble size": len(self._ensemble) if self._ensemble is not None else 0}

    def __str__(self) -> str:
        return f"BayesianBagging(sampler={self.sampler}, ensemble_size={self.ensemble_size}, base={self.base_learner})"

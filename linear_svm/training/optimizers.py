"""
Optimizer backends for linear SVM training.

Two strategies share one interface:
- BatchOptimizer: deterministic L-BFGS over the full dataset (scipy)
- ParallelOptimizer: Hogwild-style parallel SGD over a joblib thread pool

The parallel backend is a runtime capability. It is probed once at startup
with ``detect_parallel_backend`` and ``create_optimizer`` refuses to build it
when it is unavailable.
"""

import math
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from joblib import Parallel, delayed, cpu_count, effective_n_jobs
from scipy.optimize import minimize

from ..utils.config import TrainEvalConfig
from ..utils.errors import OptimizerError, UnsupportedOptimizerError

logger = logging.getLogger(__name__)

# L-BFGS-B takes a bounded integer; used when max_iterations is 0 (no limit)
UNLIMITED_ITERATIONS = np.iinfo(np.int32).max


@dataclass
class OptimizationResult:
    """Outcome of one optimizer run."""
    parameters: np.ndarray
    objective: float
    iterations: int
    converged: bool
    message: str = ''


class Optimizer(ABC):
    """Common interface of the training backends."""

    name = 'optimizer'

    @abstractmethod
    def optimize(self, function, initial_parameters: np.ndarray) -> OptimizationResult:
        """
        Minimize ``function`` starting from ``initial_parameters``.

        Args:
            function: Objective exposing ``evaluate`` and gradient methods
            initial_parameters: Starting point; not modified

        Returns:
            OptimizationResult with the optimized parameters
        """


class BatchOptimizer(Optimizer):
    """
    L-BFGS over the full training set.

    Args:
        max_iterations: Iteration cap; 0 means no limit
        min_gradient_norm: Passed to L-BFGS-B as ``gtol``: stop once the largest
            component of the projected gradient drops below this
    """

    name = 'lbfgs'

    def __init__(self, max_iterations: int = 10000, min_gradient_norm: float = 1e-10):
        self.max_iterations = max_iterations
        self.min_gradient_norm = min_gradient_norm

    def optimize(self, function, initial_parameters: np.ndarray) -> OptimizationResult:
        shape = initial_parameters.shape

        def objective(flat: np.ndarray):
            value, gradient = function.evaluate_with_gradient(flat.reshape(shape))
            return value, gradient.ravel()

        max_iterations = self.max_iterations if self.max_iterations > 0 else UNLIMITED_ITERATIONS
        result = minimize(
            objective,
            initial_parameters.ravel().copy(),
            jac=True,
            method='L-BFGS-B',
            options={
                'maxiter': max_iterations,
                'maxfun': UNLIMITED_ITERATIONS,
                'gtol': self.min_gradient_norm,
            }
        )

        if not np.isfinite(result.fun):
            raise OptimizerError(f"L-BFGS diverged: objective is {result.fun}")

        message = str(result.message)
        if not result.success:
            # Reaching the iteration cap or a failed line search on the
            # non-smooth hinge loss still leaves usable parameters
            logger.info(f"L-BFGS stopped before convergence: {message}")

        return OptimizationResult(
            parameters=result.x.reshape(shape),
            objective=float(result.fun),
            iterations=int(result.nit),
            converged=bool(result.success),
            message=message,
        )


class ConstantStep:
    """Step size policy that never decays."""

    def __init__(self, step_size: float = 0.01):
        self.step_size = step_size

    def __call__(self, epoch: int) -> float:
        return self.step_size


class ParallelOptimizer(Optimizer):
    """
    Parallel stochastic gradient descent without locking.

    Each epoch the (optionally shuffled) visitation order is cut into chunks
    of ``chunk_size`` points and handed to worker threads, which update the
    shared parameter matrix in place. ``max_iterations`` counts points, so a
    single pass over the data needs ``max_iterations == n_points``.

    Args:
        max_iterations: Maximum number of points to visit; 0 means no limit
        chunk_size: Points per worker task
        tolerance: Stop when the objective changes by less than this between epochs
        shuffle: Shuffle the visitation order every epoch
        decay_policy: Callable mapping epoch number to step size
        n_workers: Size of the thread pool
        random_state: Seed for the shuffling
    """

    name = 'psgd'

    def __init__(self,
                 max_iterations: int = 10000,
                 chunk_size: int = 1,
                 tolerance: float = 1e-5,
                 shuffle: bool = True,
                 decay_policy: Optional[ConstantStep] = None,
                 n_workers: int = 1,
                 random_state: Optional[int] = None):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1 (got {chunk_size})")
        self.max_iterations = max_iterations
        self.chunk_size = chunk_size
        self.tolerance = tolerance
        self.shuffle = shuffle
        self.decay_policy = decay_policy or ConstantStep()
        self.n_workers = n_workers
        self.random_state = random_state

    @staticmethod
    def _process_chunk(function, parameters: np.ndarray, indices: np.ndarray, step_size: float) -> None:
        for index in indices:
            gradient = function.gradient_point(parameters, index)
            parameters -= step_size * gradient

    def optimize(self, function, initial_parameters: np.ndarray) -> OptimizationResult:
        parameters = initial_parameters.copy()
        n_points = function.num_functions
        order = np.arange(n_points)
        rng = np.random.default_rng(self.random_state)
        limit = self.max_iterations if self.max_iterations > 0 else None

        visited = 0
        epoch = 0
        converged = False
        last_objective = np.inf
        message = 'maximum number of iterations reached'

        with Parallel(n_jobs=self.n_workers, backend='threading') as parallel:
            while limit is None or visited < limit:
                objective = function.evaluate(parameters)
                if not np.isfinite(objective):
                    raise OptimizerError(
                        f"ParallelSGD diverged after {visited} points (objective {objective}); "
                        "try a smaller step size"
                    )
                if abs(last_objective - objective) < self.tolerance:
                    converged = True
                    message = f'objective changed by less than tolerance {self.tolerance}'
                    break
                last_objective = objective

                epoch += 1
                step_size = self.decay_policy(epoch)
                if self.shuffle:
                    rng.shuffle(order)

                budget = n_points if limit is None else min(n_points, limit - visited)
                points = order[:budget]
                parallel(
                    delayed(self._process_chunk)(function, parameters, points[start:start + self.chunk_size], step_size)
                    for start in range(0, budget, self.chunk_size)
                )
                visited += budget
                logger.debug(f"ParallelSGD epoch {epoch}: objective {objective:.6g}, {visited} points visited")

        objective = function.evaluate(parameters)
        if not np.isfinite(objective):
            raise OptimizerError(f"ParallelSGD diverged (objective {objective}); try a smaller step size")

        return OptimizationResult(
            parameters=parameters,
            objective=float(objective),
            iterations=visited,
            converged=converged,
            message=message,
        )


def available_workers(config: TrainEvalConfig) -> int:
    """Worker count for the parallel backend."""
    return config.n_workers or cpu_count()


def detect_parallel_backend(config: TrainEvalConfig) -> bool:
    """
    Probe whether the parallel SGD backend can run.

    Disabled through ``system.parallel.enabled: false`` in the config file,
    or when joblib reports no usable workers.
    """
    if not config.parallel_enabled:
        logger.debug("Parallel backend disabled by configuration")
        return False
    try:
        n_jobs = effective_n_jobs(available_workers(config))
    except (ValueError, NotImplementedError) as e:
        logger.debug(f"Parallel backend unavailable: {e}")
        return False
    return n_jobs >= 1


def create_optimizer(config: TrainEvalConfig, n_points: int, parallel_available: bool) -> Optimizer:
    """
    Build the optimizer selected by ``config.optimizer``.

    Args:
        config: Resolved options
        n_points: Number of training points (sizes the psgd chunks)
        parallel_available: Result of ``detect_parallel_backend``

    Returns:
        Configured optimizer
    """
    if config.optimizer == 'lbfgs':
        return BatchOptimizer(
            max_iterations=config.max_iterations,
            min_gradient_norm=config.tolerance
        )

    if config.optimizer == 'psgd':
        if not parallel_available:
            raise UnsupportedOptimizerError(
                "Parallel execution backend is not available; cannot use ParallelSGD ('psgd')"
            )
        n_workers = available_workers(config)
        return ParallelOptimizer(
            max_iterations=config.max_iterations,
            chunk_size=max(1, math.ceil(n_points / n_workers)),
            tolerance=config.tolerance,
            shuffle=config.effective_shuffle,
            decay_policy=ConstantStep(config.effective_step_size),
            n_workers=n_workers,
            random_state=config.random_state,
        )

    raise UnsupportedOptimizerError(f"Unknown optimizer '{config.optimizer}'")

from functools import partial
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, confloat, field_validator, NonNegativeInt
from sklearn.base import BaseEstimator, TransformerMixin

from . import _kernel  # noqa: F401 - registers kernels
from ._registry import Kernels
from ._utils import validate_features

KernelOption = Union[str, Callable[..., float]]
PercentFloat = confloat(ge=0.0, le=100.0)


class KernelHerdingParameters(BaseModel):
    """Model for KernelHerding parameters."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kernel: KernelOption
    kernel_params: Optional[Dict[str, Any]]
    sample_size_percent: PercentFloat  # type: ignore
    verbose: NonNegativeInt

    @field_validator("kernel")
    @classmethod
    def validate_kernel(cls, v: KernelOption) -> KernelOption:
        """Validate kernel."""
        if isinstance(v, str) and v not in Kernels:
            raise ValueError(f"kernel ({v}) not supported, expected one of: {Kernels.keys()} or a callable")

        return v


def _kernel_row_function(kernel: KernelOption, kernel_params: Optional[Dict[str, Any]]) -> Callable:
    """Build a function evaluating the kernel of one sample against every sample.

    Parameters
    ----------
    kernel : str or callable
        Registered kernel name or a pairwise kernel kernel(x_i, x_j, **kernel_params) -> float.

    kernel_params : Dict[str, Any], optional
        Keyword arguments passed to the kernel.

    Returns
    -------
    Callable
        Function (x, X) -> np.ndarray of kernel values.
    """
    params = kernel_params or {}
    if isinstance(kernel, str):
        return partial(Kernels[kernel], **params)

    def kernel_row(x: np.ndarray, X: np.ndarray) -> np.ndarray:
        return np.array([kernel(x, z, **params) for z in X], dtype=float)

    return kernel_row


def kernel_herding(
    X: np.ndarray,
    *,
    kernel: KernelOption = "poly",
    sample_size_percent: float = 100.0,
    kernel_params: Optional[Dict[str, Any]] = None,
    verbose: int = 0,
) -> np.ndarray:
    """Greedily select representative samples with kernel herding.

    Each round selects the unselected sample i maximizing

        A(i) - B(i) / (n_selected + 1)

    where A(i) is the mean kernel similarity of sample i to all samples and B(i) is the summed kernel similarity of
    sample i to the samples selected so far. Ties go to the lowest index.

    Parameters
    ----------
    X : np.ndarray
        Samples.

    kernel : str or callable, default="poly"
        Registered kernel name or a pairwise kernel kernel(x_i, x_j, **kernel_params) -> float.

    sample_size_percent : float, default=100.0
        Percentage of samples to select, between 0 and 100.

    kernel_params : Dict[str, Any], default=None
        Keyword arguments passed to the kernel.

    verbose : int, default=0
        Controls verbosity during selection.

    Returns
    -------
    np.ndarray
        Indices of the selected samples in selection order.
    """
    if not 0 <= sample_size_percent <= 100:
        raise ValueError(f"sample_size_percent ({sample_size_percent}) should be between 0 and 100")

    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X[:, None]

    n = len(X)
    n_select = int(n * sample_size_percent / 100)
    kernel_row = _kernel_row_function(kernel, kernel_params)

    first_term = np.zeros(n)
    first_term_cached = np.zeros(n, dtype=bool)
    second_sum = np.zeros(n)
    selected = np.zeros(n, dtype=bool)
    indices = []

    for _ in range(n_select):
        if indices:
            second_sum += kernel_row(X[indices[-1]], X)

        # First term does not depend on selection order, compute once per sample
        for i in np.flatnonzero(~selected & ~first_term_cached):
            first_term[i] = kernel_row(X[i], X).sum() / n
            first_term_cached[i] = True

        scores = first_term - second_sum / (len(indices) + 1)
        scores[selected] = -np.inf
        best = int(np.argmax(scores))

        selected[best] = True
        indices.append(best)
        if verbose > 1:
            print(f"Selected sample ({best}) with score ({scores[best]}), ({len(indices)}/{n_select}) selected")

    return np.array(indices, dtype=int)


class KernelHerding(TransformerMixin, BaseEstimator):
    """Unsupervised subsampling of data with kernel herding.

    Only the batch seen by fit is subsampled: transform passes samples through unchanged so the transformer keeps
    one output row per input row and can be used inside FilterTreeClassifier. Use fit_resample to get the selected
    samples.

    Parameters
    ----------
    kernel : {"linear", "poly", "rbf"} or callable, default="poly"
        Kernel measuring similarity between samples. A callable is called as kernel(x_i, x_j, **kernel_params).

    kernel_params : dict, default=None
        Keyword arguments passed to the kernel, for example {"degree": 2.0} for "poly" or {"gamma": 0.1} for "rbf".

    sample_size_percent : float, default=100.0
        Percentage of the training samples to select, between 0 and 100.

    verbose : int, default=0
        Controls verbosity when fitting.

    Attributes
    ----------
    indices_ : np.ndarray
        Indices of the selected samples in selection order.

    n_features_in_ : int
        Number of features seen during fit.
    """

    def __init__(
        self,
        *,
        kernel: KernelOption = "poly",
        kernel_params: Optional[Dict[str, Any]] = None,
        sample_size_percent: float = 100.0,
        verbose: int = 0,
    ) -> None:
        self.kernel = kernel
        self.kernel_params = kernel_params
        self.sample_size_percent = sample_size_percent
        self.verbose = verbose

        KernelHerdingParameters(**self.get_params())

    def fit(self, X: Any, y: Any = None) -> "KernelHerding":
        """Select representative samples.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : Any, default=None
            Ignored.

        Returns
        -------
        self
            Fitted transformer.
        """
        X, _ = validate_features(X)
        self.n_features_in_ = X.shape[1]
        self.indices_ = kernel_herding(
            X,
            kernel=self.kernel,
            sample_size_percent=self.sample_size_percent,
            kernel_params=self.kernel_params,
            verbose=self.verbose,
        )
        if self.verbose > 0:
            print(f"Kernel herding selected ({len(self.indices_)}) of ({len(X)}) samples")

        return self

    def transform(self, X: Any) -> np.ndarray:
        """Pass samples through unchanged.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Features as a float array.
        """
        if not hasattr(self, "indices_"):
            raise ValueError("Transformer not fitted, must call fit() method before transform()")

        X, _ = validate_features(X)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(f"X should have ({self.n_features_in_}) features, got ({X.shape[1]})")

        return X

    def fit_resample(self, X: Any, y: Any = None) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
        """Select representative samples and return them.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,), default=None
            Training target, subsampled alongside X when given.

        Returns
        -------
        np.ndarray or Tuple[np.ndarray, np.ndarray]
            Selected features, and selected target when y is given.
        """
        X, _ = validate_features(X)
        self.fit(X)
        if y is None:
            return X[self.indices_]

        y = np.asarray(y)
        if len(y) != len(X):
            raise ValueError(f"Different number of samples between X ({len(X)}) and y ({len(y)})")

        return X[self.indices_], y[self.indices_]

    def get_feature_names_out(self, input_features: Any = None) -> np.ndarray:
        """Get output feature names, identical to the input feature names.

        Parameters
        ----------
        input_features : array-like of str, default=None
            Input feature names. Defaults to x0, x1, ..., x(n_features_in_ - 1).

        Returns
        -------
        np.ndarray
            Output feature names.
        """
        if input_features is None:
            return np.array([f"x{j}" for j in range(self.n_features_in_)], dtype=object)

        return np.asarray(input_features, dtype=object)

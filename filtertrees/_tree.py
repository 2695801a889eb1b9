import warnings
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator, NonNegativeInt, PositiveInt
from sklearn.base import BaseEstimator, ClassifierMixin, clone
from sklearn.preprocessing import FunctionTransformer, LabelEncoder

from ._splitter import best_split
from ._utils import class_counts, estimate_proba, split_data, validate_features


@dataclass(frozen=True, eq=False)
class LeafNode:
    """Terminal node in decision tree.

    Parameters
    ----------
    counts : np.ndarray
        Number of training samples in each class.

    value : np.ndarray
        Estimate of class probabilities.

    n_samples : int
        Number of samples at the node.
    """

    counts: np.ndarray
    value: np.ndarray
    n_samples: int


@dataclass(frozen=True, eq=False)
class SplitNode:
    """Internal node in decision tree.

    Parameters
    ----------
    transformer : Any
        Transformer fitted on the samples at the node, applied before routing.

    feature : int
        Column index of feature in the transformed space.

    threshold : float
        Best split point found in feature.

    impurity : float
        Weighted entropy of the binary split.

    left_child : Node
        Child node where the transformed feature value met the threshold.

    right_child : Node
        Child node where the transformed feature value did not meet the threshold.

    n_samples : int
        Number of samples at the node.
    """

    transformer: Any
    feature: int
    threshold: float
    impurity: float
    left_child: "Node"
    right_child: "Node"
    n_samples: int


Node = Union[SplitNode, LeafNode]


class FilterTreeParameters(BaseModel):
    """Model for FilterTreeClassifier parameters."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    transformer: Optional[Any]
    min_samples_leaf: PositiveInt
    random_state: Optional[NonNegativeInt]
    verbose: NonNegativeInt

    @field_validator("transformer")
    @classmethod
    def validate_transformer(cls, v: Any) -> Any:
        """Validate transformer."""
        if v is not None:
            missing = [method for method in ["fit", "transform"] if not callable(getattr(v, method, None))]
            if missing:
                raise ValueError(f"transformer ({type(v).__name__}) should implement fit and transform, missing: {missing}")

        return v


def _apply_transformer(transformer: Any, X: np.ndarray) -> np.ndarray:
    """Transform features and check the output keeps one row per sample.

    Parameters
    ----------
    transformer : Any
        Fitted transformer.

    X : np.ndarray
        Features.

    Returns
    -------
    np.ndarray
        Transformed features as a 2d float array.
    """
    X_filtered = transformer.transform(X)
    if hasattr(X_filtered, "toarray"):
        X_filtered = X_filtered.toarray()

    X_filtered = np.asarray(X_filtered, dtype=float)
    if X_filtered.ndim == 1:
        X_filtered = X_filtered[:, None]

    if len(X_filtered) != len(X):
        raise ValueError(
            f"Transformer ({type(transformer).__name__}) returned ({len(X_filtered)}) samples, expected ({len(X)})"
        )

    return X_filtered


class BaseFilterTreeEstimator(BaseEstimator, metaclass=ABCMeta):
    """Base filter tree estimator."""

    @property
    @abstractmethod
    def _parameter_model(self) -> Type[BaseModel]:
        """Model for validating hyperparameters."""
        pass

    def _validate_parameters(self, params: Dict[str, Any]) -> None:
        """Validate hyperparameters.

        Parameters
        ----------
        params : Dict[str, Any]
            Hyperparameters.
        """
        self._parameter_model(**params)

    def _validate_data_fit(self, *, X: Any, y: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Validate data for training by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target.

        Returns
        -------
        np.ndarray
            Training features.

        np.ndarray
            Training target.
        """
        X, feature_names_in = validate_features(X)
        if feature_names_in is None:
            feature_names_in = [f"f{j}" for j in range(1, X.shape[1] + 1)]
        self.feature_names_in_ = feature_names_in

        if not isinstance(y, np.ndarray):
            if isinstance(y, (list, tuple)):
                y = np.array(y)
            elif isinstance(getattr(y, "values", None), np.ndarray):
                y = y.values
            else:
                raise ValueError(
                    f"Unsupported type for y ({type(y)}), expected np.ndarray, list, tuple, or pandas data structure"
                )

        if y.ndim == 2:
            y = y.ravel()
        elif y.ndim > 2:
            raise ValueError(f"Multi-output labels are not supported for y, detected ({y.ndim - 1}) outputs")

        if len(X) != len(y):
            raise ValueError(f"Different number of samples between X ({len(X)}) and y ({len(y)})")

        if not len(X):
            raise ValueError("Cannot train on zero samples")

        return X, y

    def _validate_data_predict(self, X: Any) -> np.ndarray:
        """Validate data for inference by checking types and casting.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Inference features.

        Returns
        -------
        np.ndarray
            Inference features.
        """
        if not hasattr(self, "tree_"):
            raise ValueError("Estimator not trained, must call fit() method before predict()")

        X, feature_names = validate_features(X)
        if X.shape[1] != len(self.feature_names_in_):
            raise ValueError(f"X should have ({len(self.feature_names_in_)}) features, got ({X.shape[1]})")

        if feature_names:
            if set(feature_names) != set(self.feature_names_in_):
                diff = list(set(feature_names) - set(self.feature_names_in_))
                raise ValueError(f"Mismatch in feature names for X, missing ({len(diff)}) features: {diff}")

        return X


class FilterTreeClassifier(ClassifierMixin, BaseFilterTreeEstimator):
    """Decision tree classifier that fits a transformer at every node.

    At each node a fresh clone of the transformer is fitted on the samples reaching the node, the samples are
    transformed, and the binary split with the lowest weighted entropy is searched for in the transformed space. The
    fitted transformer is kept on the node and applied again when routing samples at prediction time.

    Parameters
    ----------
    transformer : transformer object, default=None
        Object implementing fit and transform, cloned at every node. Randomized transformers (those with a
        random_state parameter) are reseeded at every node from random_state. None uses the identity transformer.

    min_samples_leaf : int, default=1
        Nodes with at most this many samples become leaves.

    random_state : int, default=None
        Random seed.

    verbose : int, default=1
        Controls verbosity when fitting.

    Attributes
    ----------
    classes_ : np.ndarray
        Unique class labels.

    n_classes_ : int
        Number of classes.

    n_features_in_ : int
        Number of features seen during fit.

    feature_names_in_ : List[str]
        List of feature names seen during fit.

    tree_ : Node
        Underlying decision tree object.
    """

    def __init__(
        self,
        *,
        transformer: Optional[Any] = None,
        min_samples_leaf: int = 1,
        random_state: Optional[int] = None,
        verbose: int = 1,
    ) -> None:
        self.transformer = transformer
        self.min_samples_leaf = min_samples_leaf
        self.random_state = random_state
        self.verbose = verbose

        self._validate_parameters(self.get_params(deep=False))

    @property
    def _parameter_model(self) -> Type[BaseModel]:
        """Model for hyperparameter validation.

        Returns
        -------
        Type[BaseModel]
            Model to validate hyperparameters.
        """
        return FilterTreeParameters

    def _fit_transformer(self, X: np.ndarray, y: np.ndarray) -> Any:
        """Clone, seed and fit the transformer on the samples at a node.

        Parameters
        ----------
        X : np.ndarray
            Training features.

        y : np.ndarray
            Training target.

        Returns
        -------
        Any
            Fitted transformer.
        """
        transformer = clone(self._transformer, safe=False)
        if hasattr(transformer, "get_params"):
            seeded = [
                param
                for param in transformer.get_params(deep=True)
                if param == "random_state" or param.endswith("__random_state")
            ]
            if seeded:
                seed = int(self._prng.randint(np.iinfo(np.int32).max))
                transformer.set_params(**{param: seed for param in seeded})

        transformer.fit(X, y)
        return transformer

    def _build_tree(self, X: np.ndarray, y: np.ndarray, parent_impurity: Optional[float], depth: int) -> Node:
        """Recursively build tree.

        Parameters
        ----------
        X : np.ndarray
            Training features.

        y : np.ndarray
            Training target.

        parent_impurity : float, optional
            Impurity of the parent node's split, None at the root.

        depth : int
            Depth of tree.

        Returns
        -------
        Node
            Node in decision tree.
        """
        n = len(X)
        if self.verbose > 1:
            print(f"Building node at depth ({depth}) with ({n}) samples")

        transformer = self._fit_transformer(X, y)
        X_filtered = _apply_transformer(transformer, X)
        split = best_split(X_filtered, y, self.n_classes_)

        if split is not None:
            feature, threshold, impurity = split

            # A split with the same impurity as the parent's split stops growth
            no_gain = parent_impurity is not None and parent_impurity - impurity == 0
            if n > self.min_samples_leaf and not no_gain:
                if self.verbose > 2:
                    print(
                        f"Splitting transformed feature ({feature}) at threshold ({threshold}) with impurity "
                        f"({impurity})"
                    )
                routing = np.ascontiguousarray(X_filtered[:, feature])
                X_left, y_left, X_right, y_right = split_data(X, y, routing, threshold)
                left_child = self._build_tree(X_left, y_left, parent_impurity=impurity, depth=depth + 1)
                right_child = self._build_tree(X_right, y_right, parent_impurity=impurity, depth=depth + 1)

                return SplitNode(
                    transformer=transformer,
                    feature=feature,
                    threshold=threshold,
                    impurity=impurity,
                    left_child=left_child,
                    right_child=right_child,
                    n_samples=n,
                )

        counts = class_counts(y, self.n_classes_)
        if self.verbose > 1:
            print(f"Created leaf at depth ({depth}) with class counts {counts.tolist()}")

        return LeafNode(counts=counts, value=estimate_proba(counts), n_samples=n)

    def fit(self, X: Any, y: Any) -> "FilterTreeClassifier":
        """Train estimator.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training features.

        y : array-like of shape (n_samples,)
            Training target.

        Returns
        -------
        self
            Fitted estimator.
        """
        self._validate_parameters(self.get_params(deep=False))
        X, y = self._validate_data_fit(X=X, y=y)

        self._label_encoder = LabelEncoder()
        y = self._label_encoder.fit_transform(y).astype(np.int64)
        self.classes_ = self._label_encoder.classes_
        self.n_classes_ = len(self.classes_)
        if self.n_classes_ == 1:
            warnings.warn(f"Only one class ({self.classes_[0]}) found in y, every leaf will predict it")

        self._random_state = int(np.random.randint(1, 1_000_000)) if self.random_state is None else self.random_state
        self._prng = np.random.RandomState(self._random_state)
        self._transformer = (
            FunctionTransformer(feature_names_out="one-to-one") if self.transformer is None else self.transformer
        )

        self.n_features_in_ = X.shape[1]
        self.tree_ = self._build_tree(X, y, parent_impurity=None, depth=1)

        if self.verbose > 0:
            print(f"Built tree with depth ({self.get_depth()}) and ({self.get_n_leaves()}) leaves")

        return self

    def _predict_value(self, x: np.ndarray, tree: Optional[Node] = None) -> np.ndarray:
        """Predict class probabilities for single sample.

        Parameters
        ----------
        x : np.ndarray
            Feature.

        tree : Node, default=None
            Fitted decision tree.

        Returns
        -------
        np.ndarray
            Predicted class probabilities for sample.
        """
        if tree is None:
            tree = self.tree_

        if isinstance(tree, LeafNode):
            return tree.value

        # Route on the sample as seen by this node's transformer
        feature_value = _apply_transformer(tree.transformer, x[None, :])[0, tree.feature]
        branch = tree.left_child if feature_value <= tree.threshold else tree.right_child

        return self._predict_value(x, branch)

    def predict_proba(self, X: Any) -> np.ndarray:
        """Predict class probabilities.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted class probabilities.
        """
        X = self._validate_data_predict(X)

        return np.array([self._predict_value(x) for x in X]).reshape(len(X), self.n_classes_)

    def predict(self, X: Any) -> np.ndarray:
        """Predict target.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Features.

        Returns
        -------
        np.ndarray
            Predicted class labels.
        """
        y_hat = self.predict_proba(X)
        return self.classes_[np.argmax(y_hat, axis=1)]

    def get_depth(self) -> int:
        """Depth of the tree, 0 when the root is a leaf."""

        def depth(node: Node) -> int:
            if isinstance(node, LeafNode):
                return 0
            return 1 + max(depth(node.left_child), depth(node.right_child))

        return depth(self.tree_)

    def get_n_leaves(self) -> int:
        """Number of leaves in the tree."""

        def n_leaves(node: Node) -> int:
            if isinstance(node, LeafNode):
                return 1
            return n_leaves(node.left_child) + n_leaves(node.right_child)

        return n_leaves(self.tree_)

    def _feature_name(self, node: SplitNode) -> str:
        """Name of the transformed feature a node splits on."""
        if hasattr(node.transformer, "get_feature_names_out"):
            return str(node.transformer.get_feature_names_out(self.feature_names_in_)[node.feature])
        return f"x{node.feature}"

    def export_text(self, *, decimals: int = 2) -> str:
        """Render the tree as text, one line per branch and leaf.

        Parameters
        ----------
        decimals : int, default=2
            Number of decimals shown for thresholds.

        Returns
        -------
        str
            Text rendering of the tree.
        """
        if not hasattr(self, "tree_"):
            raise ValueError("Estimator not trained, must call fit() method before export_text()")

        lines: List[str] = []

        def render(node: Node, depth: int) -> None:
            indent = "|   " * depth
            if isinstance(node, LeafNode):
                lines.append(f"{indent}|--- counts: {node.counts.tolist()}")
                return

            name = self._feature_name(node)
            lines.append(f"{indent}|--- {name} <= {node.threshold:.{decimals}f}")
            render(node.left_child, depth + 1)
            lines.append(f"{indent}|--- {name} >  {node.threshold:.{decimals}f}")
            render(node.right_child, depth + 1)

        render(self.tree_, 0)
        return "\n".join(lines)

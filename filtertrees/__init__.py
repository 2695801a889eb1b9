# flake8: noqa
import sys

from ._herding import KernelHerding, kernel_herding
from ._registry import Kernels
from ._tree import FilterTreeClassifier, LeafNode, SplitNode

# Tree building and prediction recurse once per level
sys.setrecursionlimit(100_000)

"""Contains utilities to visualize candidate paths, selected plans and join graphs.

This package requires the *graphviz* package and has to be imported explicitly.
"""

from . import plans, trees
from .plans import plot_join_graph, plot_path, plot_plan
from .trees import plot_tree

__all__ = ["plans", "trees", "plot_join_graph", "plot_path", "plot_plan", "plot_tree"]

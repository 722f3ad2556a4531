"""GraduPlanner - personal academic progress tracker."""

__version__ = "0.1.0"

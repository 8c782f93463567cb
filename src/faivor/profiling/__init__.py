"""Per-column statistical profiling of uploaded CSV datasets."""

from faivor.profiling.profiler import profile_dataset, profile_file

__all__ = ["profile_dataset", "profile_file"]

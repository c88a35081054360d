"""patchnorm — normalize git commit diffs into backend-independent records."""

__version__ = "0.1.0"

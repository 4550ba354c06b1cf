"""Check that the authors declared in source files and manifests match the git history."""

__version__ = "0.1.0"

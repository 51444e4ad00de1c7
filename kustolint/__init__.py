"""Parallel markdown, shell and kustomize static analysis for platform repositories."""

__version__ = "0.1.0"

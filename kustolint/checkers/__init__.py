"""Checker implementations run by the static analysis pipeline."""

from .base import Checker
from .lint import LintChecker, markdown_checker, shell_checker

__all__ = ["Checker", "LintChecker", "markdown_checker", "shell_checker"]

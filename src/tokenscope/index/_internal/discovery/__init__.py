"""Workspace discovery."""

from tokenscope.index._internal.discovery.scanner import EnumerationResult, enumerate_files

__all__ = ["EnumerationResult", "enumerate_files"]

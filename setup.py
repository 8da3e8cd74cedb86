"""Setuptools build hooks for indexcheck."""

from __future__ import annotations

from setuptools import setup

# The project ships pure Python modules plus one grammar file, so the default
# command classes are kept and the wheel is built as ``py3-none-any``.
setup()

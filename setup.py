#!/usr/bin/env python3
"""
Setup script for typedyaml.

typedyaml is pure Python. It builds on PyYAML's scanner, parser and emitter,
extended to carry comments, and adds a metadata-preserving document layer and
a typed object mapper on top.

Install for development:
    pip install -e .[test]
    pytest tests
"""

import os
import re

from setuptools import setup


def read_version():
    """Read __version__ from the package without importing it."""
    here = os.path.dirname(os.path.abspath(__file__))
    with open(os.path.join(here, 'typedyaml', '__init__.py')) as f:
        match = re.search(r"^__version__ = '([^']+)'", f.read(), re.M)
    if not match:
        raise RuntimeError("unable to find __version__")
    return match.group(1)


setup(
    name='typedyaml',
    version=read_version(),
    description='Metadata-preserving YAML documents and typed object mapping',
    packages=['typedyaml'],
    package_data={'typedyaml': ['__init__.pyi']},
    python_requires='>=3.10',
    install_requires=['PyYAML>=6.0'],
    extras_require={'test': ['pytest']},
)

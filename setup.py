#!/usr/bin/env python
from setuptools import setup, find_namespace_packages

setup(
    name="code-graph-analysis",
    version="0.1.0",
    description="Polyglot static source analysis and dependency graph construction",
    packages=find_namespace_packages(where="src"),
    package_dir={"": "src"},
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        # Configuration and schema models
        "pydantic>=2.7.0",
        "pydantic-settings>=2.3.0",

        # Logging and tracing
        "structlog>=24.1.0",
        "opentelemetry-api>=1.25.0",
        "opentelemetry-sdk>=1.25.0",

        # Source discovery and parsing
        "pathspec>=0.12.1",
        "tree-sitter>=0.25.0",
        "tree-sitter-language-pack>=0.9.0,<1",
    ],
    extras_require={
        "test": [
            "pytest>=8.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "code-graph-analyze=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

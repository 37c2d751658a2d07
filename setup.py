"""Packaging for Cairn.

Install for development:
    pip install -e ".[test]"
    pytest
"""

from setuptools import setup, find_packages

setup(
    name="cairn",
    version="0.1.0",
    description="Streak, milestone, achievement, goal and trend scoring for a meditation app",
    packages=find_packages(include=["cairn", "cairn.*"]),
    python_requires=">=3.10",
    install_requires=[
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)

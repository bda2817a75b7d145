"""
MarkTree setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="marktree",
    version="1.0.0",
    description="MarkTree — Bookmark folder tree engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)

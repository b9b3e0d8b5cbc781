"""
Setup script for the party-rounds package.

The internal modules (_engine, _store, _shared, _config) back the
public API (controller.py, collaborators.py, types.py, errors.py).
"""

from setuptools import setup, find_packages

setup(
    name="party-rounds",
    version="1.0.0",
    description="Realtime party game round controller - synchronized stages, timer and rounds",
    author="Party Rounds Maintainers",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "build",
            "wheel",
        ],
    },
    package_data={
        "party_rounds._store": ["schema.sql"],
    },
    entry_points={
        "console_scripts": [
            "party-rounds=party_rounds.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

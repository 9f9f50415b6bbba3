"""
Setup script for the reprokit project.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")
else:
    long_description = "reprokit: provenance-based training and reproduction of ML models"

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
if requirements_file.exists():
    with open(requirements_file) as f:
        requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]
else:
    requirements = []

# Development dependencies
dev_requirements = [
    "pytest>=7.0",
    "pytest-mock>=3.10",
    "pytest-cov>=4.0",
    "black>=24.0",
    "ruff>=0.2.0",
    "mypy>=1.8",
]

setup(
    name="reprokit",
    version="0.1.0",
    description="Training, evaluation and provenance-based reproduction of classification and regression models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": dev_requirements,
        "test": ["pytest>=7.0", "pytest-mock>=3.10"],
    },
    entry_points={
        "console_scripts": [
            "reprokit-train-test=scripts.train_test:main",
            "reprokit-reproduce=scripts.reproduce:main",
        ],
    },
    zip_safe=False,
)

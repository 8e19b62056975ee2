"""
Setup script for nttkit.

To install:
    pip install .

To install in development mode:
    pip install -e ".[dev]"
"""

import os

from setuptools import setup, find_packages

setup(
    name="nttkit",
    version="0.1.0",
    author="",
    author_email="",
    description="nttkit: exact number-theoretic transforms and polynomial arithmetic",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["scripts"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20",
        "sympy>=1.9",
        "pyyaml>=5.4",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
    keywords="ntt number-theoretic-transform fft polynomial modular-arithmetic",
)

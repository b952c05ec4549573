"""Setup script for step_diff package."""

from setuptools import setup, find_packages

setup(
    name="step_diff",
    version="1.0.0",
    description="Signature-based assembly tree diff for STEP AP242 CAD files",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "openai>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov",
        ],
    },
    entry_points={
        "console_scripts": [
            "step-diff=step_diff.cli:main",
        ],
    },
)

"""Setup script for selfie-gate."""

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="selfie-gate",
    version="0.1.0",
    description="Heuristic proof-of-presence validation for attendance check-in selfies",
    author="Team Converge",
    packages=find_packages(include=["selfie_gate", "selfie_gate.*"]),
    python_requires=">=3.8",
    install_requires=[r for r in required if not r.startswith("pytest")],
    extras_require={
        "test": [r for r in required if r.startswith("pytest")],
    },
    entry_points={
        "console_scripts": [
            "selfie-gate=selfie_gate.cli:main",
        ],
    },
    include_package_data=True,
)

from setuptools import find_packages, setup

setup(
    name="stretchkit",
    version="0.1.0",
    description="Pitch-preserving audio time stretching (WSOLA) with a CLI.",
    packages=find_packages(include=["stretchkit", "stretchkit.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "librosa",
        "soundfile",
        "click",
        "rich",
        "pydantic>=2",
        "toml",
        "tabulate",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "stretchkit=stretchkit.cli.main:cli",
        ],
    },
)

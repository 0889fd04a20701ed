from setuptools import setup, find_packages


setup(
    name="tara",
    version="0.1",
    packages=find_packages(include=["tara", "tara.*"]),
    description="A flat archive of named byte payloads with a length-prefixed header.",
    author="vercingetorx",
    python_requires=">=3.9",
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "tara=tara.cli:main",
        ]
    },
)

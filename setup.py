"""Setup script for the bmeinflux package."""

from setuptools import find_packages, setup

setup(
    name="bmeinflux",
    version="0.1.0",
    description="Samples a BME680 environmental sensor and writes readings to InfluxDB",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml",
        "python-dotenv",
        "aiohttp",
        "rich",
    ],
    extras_require={
        "hardware": [
            "bme680",
            "smbus2",
        ],
        "dev": [
            "pytest",
            "pytest-asyncio",
            "bme680",
            "smbus2",
            "black",
            "isort",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "bmeinflux=bmeinflux.collector:main",
        ],
    },
)

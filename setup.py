"""Package setup for workbench-sdk."""

from setuptools import setup

setup(
    name="workbench-sdk",
    version="1.0.0",
    description="Python client for the Service Workbench administrative API",
    packages=["workbench_sdk"],
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.5.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0", "fastapi>=0.100.0"],
    },
)

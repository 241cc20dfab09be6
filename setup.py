"""Setup script for the hello-otel service."""

from setuptools import setup, find_packages

setup(
    name="hello-otel",
    version="0.1.0",
    description="Hello world HTTP service exporting traces and logs to an OpenTelemetry Collector",
    author="Platform Observability Team",
    python_requires=">=3.10",
    packages=find_packages(include=["hello_otel", "hello_otel.*"]),
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#") and not line.startswith("git+")
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "httpx>=0.27.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "pytest-cov>=4.1.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "hello-otel=hello_otel.cli:app",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

"""Setup script for ytrelay."""

from pathlib import Path

from setuptools import find_packages, setup

with Path("README.md").open() as file:
    long_description = file.read()

setup(
    name="ytrelay",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    description="WebSub subscriber that relays YouTube upload notifications "
    "to a Discord webhook",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
    install_requires=[
        "fastapi~=0.115.0",
        "httpx~=0.28.1",
        "uvicorn~=0.34.0",
        "xmltodict~=0.14.2",
        "pyngrok~=7.2.3",
        "aiofiles~=24.1.0",
        "pydantic-settings~=2.7",
        "typing_extensions>=4.5; python_version < '3.12'",
    ],
    extras_require={
        "test": [
            "pytest>=8",
            "pytest-asyncio>=0.24",
            "respx~=0.22.0",
        ],
    },
    entry_points={
        "console_scripts": ["ytrelay=ytrelay.__main__:main"],
    },
    license="MIT",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)

#!/usr/bin/env python3
"""
Setup configuration for icloud-album
Resolve iCloud shared album links into photo download URLs
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "requests>=2.31.0",
    "pyyaml>=6.0.1",
    "rich-click>=1.7.0",
    "tqdm>=4.66.1",
]

setup(
    name="icloud-album",
    version="0.1.0",
    author="icloud-album Team",
    description="Resolve iCloud shared album links into photo metadata and download URLs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Multimedia :: Graphics",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "icloud-album=icloud_album.cli:main",
        ],
    },
    include_package_data=True,
    keywords="icloud shared album photos sharedstreams cli",
)

#!/usr/bin/env python3
"""
Setup script for tobylte.
"""

from setuptools import setup, find_packages

setup(
    name="tobylte",
    version="0.1.0",
    description="Connection manager for u-blox TOBY LTE modems driven via AT commands",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pyserial>=3.5",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-timeout>=2.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tobylte=tobylte.cli:main",
        ],
    },
    keywords=["u-blox", "toby", "modem", "cellular", "at-commands", "lte", "pdp"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Topic :: Communications",
        "Topic :: System :: Networking",
        "Operating System :: POSIX :: Linux",
        "License :: OSI Approved :: MIT License",
    ],
)

#!/usr/bin/env python3
"""Setup script for Chat Highlights"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="chat-highlights",
    version="1.0.0",
    description="Highlight, alert and ping sound rules for Twitch chat",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Chat Highlights Contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "chat_highlights": [
            "data/config.json.example",
            # Generated by scripts/generate_sounds.py before building
            "data/sounds/*.wav",
        ],
    },
    python_requires=">=3.7",
    install_requires=[
        "miniirc>=1.9.0",
        "PyGObject>=3.40.0",
        "pluggy>=1.0.0",
    ],
    extras_require={
        "soundgen": [
            "numpy>=1.20.0",
            "scipy>=1.7.0",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "chat-highlights=chat_highlights.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: Communications :: Chat",
    ],
    keywords="twitch chat highlights notifications irc",
)

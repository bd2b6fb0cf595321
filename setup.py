#!/usr/bin/env python3
"""
Setup configuration for taskbar-lyrics
Time-synchronised lyrics resolver for the desktop media session
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "aiohttp>=3.9.1",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "python-dotenv>=1.0.0",
    "tqdm>=4.66.1",
    "colorama>=0.4.6",
]

setup(
    name="taskbar-lyrics",
    version="0.1.0",
    author="taskbar-lyrics",
    description="Resolve and follow time-synchronised lyrics for the playing track",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["taskbar_lyrics", "taskbar_lyrics.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "taskbar-lyrics=taskbar_lyrics.cli:main",
        ],
    },
    keywords="lyrics lrc karaoke media-session qqmusic netease lrclib cli",
)

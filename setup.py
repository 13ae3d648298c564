#!/usr/bin/env python3
"""
Setup configuration for playlist-backup
Periodic M3U8 backups of a media library host's playlists
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "apscheduler>=3.10,<4",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
]

setup(
    name="playlist-backup",
    version="0.1.0",
    author="playlist-backup Team",
    description="Export media library playlists to portable M3U8 files on a schedule",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["playlist_backup", "playlist_backup.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: System :: Archiving :: Backup",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
        ],
    },
    entry_points={
        "console_scripts": [
            "playlist-backup=playlist_backup.cli:main",
        ],
    },
    keywords="playlist m3u m3u8 backup music library cli",
)

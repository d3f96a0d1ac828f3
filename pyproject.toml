[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "escranking"
version = "0.1.0"
description = "Web API and admin console for a song contest prediction game: rankings, scores and a leaderboard."
requires-python = ">=3.10"
keywords = ["song contest", "ranking", "prediction", "leaderboard", "flask", "firestore"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "flask",
    "pyjwt",
    "cryptography",
    "requests",
    "prompt-toolkit",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
escranking-server = "escranking.app:main"
escranking-admin = "escranking.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["escranking"]

[tool.pytest.ini_options]
addopts = "-ra"

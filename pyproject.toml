[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "matchqueue"
version = "0.1.0"
description = "A small TCP matchmaking server and console client that queue players for games."
requires-python = ">=3.10"
dependencies = []
keywords = ["matchmaking", "game server", "queue", "tcp", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
matchqueue-server = "matchqueue.server:main"
matchqueue-client = "matchqueue.client:main"

[tool.hatch.build.targets.wheel]
packages = ["matchqueue"]

[tool.pytest.ini_options]
addopts = "-ra"

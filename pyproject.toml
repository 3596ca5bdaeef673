[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinychat"
version = "0.1.0"
description = "A small TCP chat server and client with user accounts and message history stored in SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "tcp", "sqlite", "messaging", "server", "client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tinychat-server = "tinychat.server:main"
tinychat-client = "tinychat.client:main"

[tool.hatch.build.targets.wheel]
packages = ["tinychat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ropreset"
version = "0.1.0"
description = "Service layer for sharing, tagging and summarising Ragnarok Online equipment presets"
requires-python = ">=3.10"
keywords = ["ragnarok-online", "presets", "mongodb", "jwt", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Role-Playing",
]
dependencies = [
    "pyjwt",
    "pymongo",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ropreset"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

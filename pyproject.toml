[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kotel"
version = "0.35.0"
description = "Control logic and protocol helpers for a pellet boiler controller: scheduling, fuel tracking, sensors, keyboard, display simulation and small network codecs"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "boiler",
    "heating",
    "home-automation",
    "scheduler",
    "ds18b20",
    "one-wire",
    "max7219",
    "sha1",
    "base64",
    "ntp",
    "dns",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["kotel"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

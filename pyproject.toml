[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lobook"
version = "0.1.0"
description = "A price-time priority limit order book with a matching engine and a random market simulation."
requires-python = ">=3.10"
dependencies = []
keywords = ["order book", "limit order book", "matching engine", "trading", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lobook-sim = "lobook.simulation:main"

[tool.hatch.build.targets.wheel]
packages = ["lobook"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"

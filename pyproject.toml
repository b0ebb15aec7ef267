[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vecgraphdb"
version = "0.1.0"
description = "Core pieces of a vector database engine: schema catalog, write-ahead log, graph index segments and graph-guided nearest-neighbour search."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "vector database",
    "nearest neighbour",
    "ann",
    "graph index",
    "write-ahead log",
    "catalog",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vecgraphdb"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true

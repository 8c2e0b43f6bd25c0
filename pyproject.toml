[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jx3sim"
version = "1.3.5"
description = "Combat damage simulation service: tab data lookups, in-game macro compilation and an HTTP task server"
requires-python = ">=3.10"
dependencies = []
keywords = ["simulation", "combat", "dps", "macro", "damage", "http-service"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
jx3sim = "jx3sim.web:main"

[tool.hatch.build.targets.wheel]
packages = ["jx3sim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ezlang"
version = "0.1.0"
description = "Syntax tree, type checker, interpreter and C code generator for the EZ language, with build planning for friend modules in C, C++ and Python"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "interpreter",
    "type-checker",
    "code-generation",
    "c",
    "nix",
    "build-plan",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: Software Development :: Code Generators",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ezlang"]

[tool.hatch.build.targets.sdist]
include = ["ezlang", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true

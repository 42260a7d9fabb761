[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xsmkit"
version = "0.1.0"
description = "Building blocks for XSM compilers: ExpL symbol tables, type checking and code generation, SPL registers, labels and paths"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "compiler",
    "code-generation",
    "assembly",
    "xsm",
    "spl",
    "expl",
    "symbol-table",
    "type-checking",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Education",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xsmkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvsim"
version = "0.1.0"
description = "A model of a small x86 teaching kernel's core pieces: paging, locks, ELF headers, system call dispatch, shell parsing and user tools"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "paging", "simulation", "shell", "education"]
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
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xvsim-wc = "xvsim.wc:main"
xvsim-rm = "xvsim.rm:main"

[tool.hatch.build.targets.wheel]
packages = ["xvsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

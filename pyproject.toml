[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvuser"
version = "0.1.0"
description = "Small Unix-style user programs, a file-system image builder, a shell-line parser and a Sv39 page-table model for a teaching operating system"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "teaching",
    "shell-parser",
    "mkfs",
    "page-table",
    "sv39",
    "unix-utilities",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Operating System",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-cat = "xvuser.cat:main"
xv-echo = "xvuser.echo:main"
xv-wc = "xvuser.wc:main"
xv-grep = "xvuser.grep:main"
xv-ls = "xvuser.ls:main"
xv-kill = "xvuser.fileutils:kill_main"
xv-ln = "xvuser.fileutils:ln_main"
xv-mkdir = "xvuser.fileutils:mkdir_main"
xv-rm = "xvuser.fileutils:rm_main"
xv-mkfs = "xvuser.mkfs:main"

[tool.hatch.build.targets.wheel]
packages = ["xvuser"]

[tool.hatch.build.targets.sdist]
include = ["xvuser", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
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

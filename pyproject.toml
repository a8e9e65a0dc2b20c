[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zlutil"
version = "0.1.0"
description = "Small toolkit utilities: object pools, GOP-aware ring buffers, speed meters, lock-free local time and a MySQL connection helper"
requires-python = ">=3.10"
dependencies = [
    "pymysql",
]
keywords = ["ring buffer", "resource pool", "gop cache", "throughput", "localtime", "mysql"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["zlutil"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

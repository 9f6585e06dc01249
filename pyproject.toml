[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "obcable"
version = "0.1.0"
description = "Sidecar agent that supervises an observer process behind a small HTTP control API, with typed cloud.oceanbase.com/v1 resource models"
requires-python = ">=3.10"
dependencies = ["psutil"]
keywords = ["oceanbase", "observer", "sidecar", "process supervision", "custom resources"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
obcable = "obcable.server:main"

[tool.setuptools]
packages = ["obcable"]

[tool.pytest.ini_options]
addopts = "-ra"

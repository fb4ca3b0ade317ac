[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "craftbridge"
version = "0.1.0"
description = "A small Docker remote API client, size and duration helpers, and a setup command that installs the docker binary matching the daemon"
requires-python = ">=3.10"
dependencies = []
keywords = ["docker", "containers", "remote-api", "client", "units"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
craftbridge-setup = "craftbridge.installer:main"

[tool.hatch.build.targets.wheel]
packages = ["craftbridge"]

[tool.pytest.ini_options]
addopts = "-ra"

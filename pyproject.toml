[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "givilsta"
version = "0.1.0"
description = "A different whitelisting mechanism for blocklist maintainers."
requires-python = ">=3.10"
dependencies = []
keywords = ["blocklist", "whitelist", "allowlist", "hosts", "domains", "dns"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
givilsta = "givilsta.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["givilsta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mbotlink"
version = "0.1.0"
description = "Fixed-layout MBot messages, rosserial-style packet framing, a serial port wrapper and non-blocking TCP links"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["mbot", "robotics", "rosserial", "serialization", "serial", "uart", "tcp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mbotlink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

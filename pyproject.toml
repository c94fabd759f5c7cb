[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pbfosm"
version = "0.1.0"
description = "Write OpenStreetMap nodes, ways and relations as an OSM PBF file"
requires-python = ">=3.10"
dependencies = []
keywords = ["openstreetmap", "osm", "pbf", "protobuf", "gis", "encoder"]
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
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: File Formats",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pbfosm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

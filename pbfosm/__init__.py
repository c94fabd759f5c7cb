"""Writing OpenStreetMap nodes, ways and relations as OSM PBF files."""

__version__ = "0.1.0"
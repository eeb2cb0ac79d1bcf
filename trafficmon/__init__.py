"""Vehicle tracking, IPM mapping, lane zoning and speed estimation for traffic cameras."""

__version__ = "0.1.0"
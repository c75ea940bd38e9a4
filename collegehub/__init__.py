"""CollegeHub - college discovery, reviews and admissions API."""

__version__ = "1.0.0"

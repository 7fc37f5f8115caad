"""Safe image selection and decode benchmarking for image viewers."""

__version__ = "0.1.0"

"""cleanarch -- transactional scaffolding for clean-architecture projects."""

__version__ = "0.1.0"

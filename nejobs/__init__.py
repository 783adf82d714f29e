"""New England Jobs: remote and New England job search over the JSearch API."""

__version__ = "1.0.0"

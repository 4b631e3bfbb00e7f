"""DocReview: two-party document approval workflow."""

__version__ = "0.1.0"

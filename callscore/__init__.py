"""Call evaluation dashboard analytics service."""

"""LifeCherry comments API."""

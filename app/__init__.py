"""HTTP application package."""

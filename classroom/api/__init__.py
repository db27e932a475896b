"""HTTP application and exception handlers."""

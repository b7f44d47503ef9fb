"""Decision and rule renderers."""

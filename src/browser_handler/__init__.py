"""Browser automation Lambda."""

"""Local-first file bookmark store with WebDAV synchronization."""

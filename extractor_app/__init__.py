"""
Web content extractor app package.

This package provides:
- A thin client for the remote extraction agent
- Local JSON-based history and theme storage
- Pure state/render helpers and a single Streamlit UI entrypoint.
"""

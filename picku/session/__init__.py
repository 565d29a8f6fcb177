"""
Session-limited search client.

Responsibilities:
- Validate the search form and build the results-view navigation URL.
- Track the per-browser-session search counter (capped at 3).
- Drive the results view: mount/shuffle, selection and copy-to-clipboard text.
"""

"""
Places search layer.

Responsibilities:
- Manage Google Places API configuration and credentials.
- Build the text-search query and budget filter from user input.
- Call the Text Search endpoint and map provider statuses to HTTP errors.
- Randomly sample and normalize results into the public restaurant shape.
"""

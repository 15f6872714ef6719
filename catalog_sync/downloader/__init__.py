"""Browser-side steps of a catalog run: login, export download and their helpers."""

"""
Core domain models of SonicWave.

Modules:
    exceptions.py: The error taxonomy. Engine-boundary errors, format errors and
                   the never-surfaced cleanup error all derive from `SonicWaveException`.
    formats.py: `FormatProfile` and the read-only `FormatCatalog`.
    metadata.py: `Metadata` and the log-scraping `extract_metadata`.
    models.py: Source files, options, jobs, and job/batch results.
"""

"""
This package contains the conversion pipeline for SonicWave.

A pipeline orchestrates a whole batch: it turns input files into jobs, runs
them in order against the shared codec engine, and collects the results.
"""

"""
SonicWave: batch audio conversion on top of an external codec engine.

The package is split into layers:
- `config`: static settings and user overrides.
- `domain`: formats, jobs, results, metadata parsing and the error taxonomy.
- `services`: the codec engine interface, the FFmpeg engine, the per-job
  orchestrator, input discovery and reports.
- `pipeline`: the batch orchestrator and `run_batch`.
"""

__version__ = "1.0.0"

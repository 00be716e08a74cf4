"""
Services Package for SonicWave.

- **Codec engine (`CodecEngine`, `FFmpegEngine`):** the buffer-oriented interface
  the pipeline consumes, and its implementation over a local FFmpeg binary.
- **Job orchestration (`JobOrchestrator`):** stages one file, optionally probes its
  metadata, converts it with bounded retries and always cleans up.
- **File processing (`ProcessAudioFiles`, `save_results`):** finds and loads input
  files and writes converted outputs.
- **Logging (`ErrorLog`, `BatchReportLog`):** text error log and YAML batch report.
"""
from .engine_base import CodecEngine
from .ffmpeg_engine import FFmpegEngine
from .job_orchestrator import JobOrchestrator, build_command

__all__ = ["CodecEngine", "FFmpegEngine", "JobOrchestrator", "build_command"]

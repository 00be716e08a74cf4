"""
Configuration Package for SonicWave.

This package centralizes the static configuration of the application:
- Audio output format profiles, accepted input extensions and naming rules.
- Common settings like the logging format, engine retry policy, buffer naming
  and job states, plus user overrides read from `config.user.yaml`.
"""

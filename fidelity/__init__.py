"""
persona-fidelity — scores text against declarative persona definitions.

Packages:
  models  — pydantic input models (persona definition, validation config)
  kernel  — the pure scoring engine (fidelity, voice, frameworks, comparison,
            reports, test runner)
  config  — environment-driven defaults
"""

__version__ = "0.4.0"

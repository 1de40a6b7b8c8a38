"""Mutation-based negative and boundary fuzzing of contract operations.

Implements:
  - Static probe catalogs (whitespace, control, invisible and emoji characters)
  - Lazy mutation strategies (replace, trail, trim-then-validate, boundary)
  - A declarative fuzzer table instantiated by one parametrized fuzzer
  - Two-phase scheduling with per-pair failure isolation
  - Response-code family expectations
"""

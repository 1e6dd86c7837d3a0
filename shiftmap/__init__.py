"""
Shift Activity Mapper — Production Package
===========================================
Resolves free-text shift activity descriptions onto a fixed canonical
taxonomy: embedding similarity first, confidence-gated LLM escalation
second, human review for whatever neither tier is sure about.

Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       All tuneable settings & prompt strings
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (OpenAI, Vertex AI)
                plus JSON dataset I/O
  services/     Scorer, escalation classifier, tiered resolver, runner;
                depends only on Ports, never Adapters
  interfaces/   Delivery layer: CLI, Streamlit UI
  tests/        Full test suite: unit / integration / e2e

Swapping an external dependency (LLM or embedding model):
  1. Write a new adapter in adapters/ implementing the relevant Port
  2. Change the single wiring line in services/container.py
"""
__version__ = "1.0.0"

"""
Vet Records Summarizer Backend.

A FastAPI service that summarizes veterinary PDF records into structured
vaccines, surgeries, medications, bloodwork and an FAQ panel using AI
(OpenAI chat completions with structured outputs).
"""

__version__ = "1.0.0"

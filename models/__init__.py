"""Data models for Prompt Nest.

Updates: v0.2.0 - 2026-03-04 - Export record serialisation helpers.
Updates: v0.1.0 - 2026-02-04 - Export Prompt dataclass.
"""

from .prompt_model import Prompt, coerce_embedding, prompts_from_records, prompts_to_records

__all__ = [
    "Prompt",
    "coerce_embedding",
    "prompts_from_records",
    "prompts_to_records",
]

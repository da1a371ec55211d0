"""Batch validation package."""

from accounter.validation.validator import BatchRejectedError, BatchValidator

__all__ = ["BatchRejectedError", "BatchValidator"]

from __future__ import annotations


class CompletionNotConfiguredError(ValueError):
	"""Raised when no completion-service credentials are configured."""


class AssessmentError(Exception):
	"""Base class for failures surfaced to the caller of the assessment pipeline."""


class InputValidationError(AssessmentError):
	pass


class ServiceUnavailableError(AssessmentError):
	"""The completion service is not configured, so the stage cannot run at all."""


class AnalysisError(AssessmentError):
	pass


class FeedbackError(AssessmentError):
	pass

from .pipeline import assess
from .timeline import generate_timeline
from .topics import explain_topic

__all__ = ["assess", "explain_topic", "generate_timeline"]

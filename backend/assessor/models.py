from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


class AssessmentRecord(Base):
	__tablename__ = "assessments"
	id = Column(Integer, primary_key=True, autoincrement=True)
	subject = Column(String(256), nullable=False)
	input = Column(Text, nullable=False)
	# "text" or "audio"; for audio, input holds the transcript
	input_type = Column(String(16), nullable=False, default="text")
	score = Column(Integer, nullable=False)
	detected_language = Column(String(8), nullable=False, default="en")
	# JSON string snapshots of the topic lists
	covered_topics = Column(Text, nullable=False, default="[]")
	missing_topics = Column(Text, nullable=False, default="[]")
	topic_coverage = Column(Text, nullable=False, default="[]")
	feedback = Column(Text, nullable=False, default="")
	enhanced_feedback = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SessionLanguage(Base):
	__tablename__ = "session_languages"
	session_id = Column(String(64), primary_key=True, index=True)
	language = Column(String(8), nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

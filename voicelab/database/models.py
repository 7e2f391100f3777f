"""ORM tables: audio_files, voices, mixed_outputs."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AudioFileRecord(Base):
    __tablename__ = "audio_files"

    id = Column(String(64), primary_key=True)
    name = Column(String(512), nullable=False)
    url = Column(Text, nullable=False)
    storage_path = Column(Text)
    source_type = Column(String(32), nullable=False, default="upload")
    source_url = Column(Text)
    duration = Column(Integer, nullable=False, default=0)
    waveform = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    voices = relationship("VoiceRecord", back_populates="audio_file", cascade="all, delete-orphan")


class VoiceRecord(Base):
    __tablename__ = "voices"

    id = Column(String(64), primary_key=True)
    audio_id = Column(String(64), ForeignKey("audio_files.id", ondelete="CASCADE"), nullable=False)
    tag = Column(String(255), nullable=False)
    start_time = Column(Float, nullable=False)
    end_time = Column(Float, nullable=False)
    color = Column(String(32), nullable=False)
    volume = Column(Float, nullable=False, default=1.0)
    audio_url = Column(Text)
    characteristics = Column(JSON, nullable=False, default=dict)
    # Insertion order inside one analysis run.
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    audio_file = relationship("AudioFileRecord", back_populates="voices")

    __table_args__ = (
        Index("ix_voices_audio_id", "audio_id"),
    )


class MixedOutputRecord(Base):
    __tablename__ = "mixed_outputs"

    id = Column(String(64), primary_key=True)
    audio_id = Column(String(64), nullable=False, index=True)
    voices = Column(JSON, nullable=False, default=list)
    output_url = Column(Text, nullable=False)
    storage_path = Column(Text, nullable=False)
    content_type = Column(String(64), nullable=False, default="audio/wav")
    tts_text = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

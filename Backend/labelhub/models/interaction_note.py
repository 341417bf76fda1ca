from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from labelhub.services.database import Base, utcnow

class InteractionNote(Base):
    __tablename__ = "interaction_notes"

    # Autoincrement id doubles as insertion order for newest-first listing
    id = Column(Integer, primary_key=True, autoincrement=True)
    author_name = Column(String(255), nullable=False)
    author_role = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    release_id = Column(String(36), ForeignKey("releases.id"), nullable=False, index=True)
    release = relationship("Release", back_populates="notes")

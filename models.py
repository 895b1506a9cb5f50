from sqlalchemy import BigInteger, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")

Base = declarative_base()


class Series(Base):
    __tablename__ = 'series'

    id = Column(_ID_TYPE, primary_key=True, autoincrement=True)
    slug = Column(String(255), unique=True, nullable=False)
    title = Column(String(500), nullable=False)
    thumbnail_url = Column(String(2000))
    author = Column(String(255))
    description = Column(Text)
    status = Column(String(50))
    genre = Column(String(255))
    release_year = Column(Integer)
    source_id = Column(Integer)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False, index=True)

    # Relationships
    chapters = relationship(
        "Chapter",
        back_populates="series",
        cascade="all, delete-orphan",
        order_by="Chapter.chapter_number"
    )

    def __repr__(self):
        return f"<Series(id={self.id}, slug='{self.slug}', title='{self.title[:30]}')>"


class Chapter(Base):
    __tablename__ = 'chapters'

    id = Column(_ID_TYPE, primary_key=True, autoincrement=True)
    series_id = Column(_ID_TYPE, ForeignKey('series.id', ondelete='CASCADE'), nullable=False)
    chapter_number = Column(Float, nullable=False)
    title = Column(String(500))
    content = Column(Text)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationship
    series = relationship("Series", back_populates="chapters")

    # Composite index for ordered chapter listings
    __table_args__ = (
        Index('ix_chapters_series_id_number', 'series_id', 'chapter_number'),
    )

    def __repr__(self):
        return f"<Chapter(id={self.id}, series_id={self.series_id}, number={self.chapter_number})>"

"""
Relationship ledger: SQLite persistence for organization relatedness edges.

Uses SQLAlchemy. Edges are only ever added; nothing here deletes them.
"""

from datetime import datetime
from pathlib import Path
from typing import List

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class RelationshipEdge(Base):
    """One directed parent -> alias/subsidiary fact."""

    __tablename__ = "relationship_edges"
    __table_args__ = (
        UniqueConstraint("parent_key", "alias_key", "origin", name="uq_relationship_edge"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_key = Column(String, nullable=False, index=True)  # normalized name
    parent_name = Column(String, nullable=False)
    alias_key = Column(String, nullable=False, index=True)
    alias_name = Column(String, nullable=False)
    origin = Column(String, nullable=False)  # manual, auto_discovered
    created_at = Column(DateTime, nullable=False, default=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()


class RelationshipLedger:
    """Append-only store of relatedness edges added at runtime."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        init_database(self.db_path)
        self._session_factory = sessionmaker(bind=create_engine(f"sqlite:///{self.db_path}"))

    def load(self) -> List[RelationshipEdge]:
        """All edges, oldest first. Returned objects are detached from the session."""
        session = self._session_factory()
        try:
            edges = session.query(RelationshipEdge).order_by(RelationshipEdge.id).all()
            session.expunge_all()
            return edges
        finally:
            session.close()

    def record(self, parent_key: str, parent_name: str, alias_key: str, alias_name: str, origin: str) -> bool:
        """
        Persist an edge. Returns False if the same edge is already stored.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On database failures other than
                a duplicate edge
        """
        session = self._session_factory()
        try:
            session.add(RelationshipEdge(
                parent_key=parent_key,
                parent_name=parent_name,
                alias_key=alias_key,
                alias_name=alias_name,
                origin=origin,
            ))
            session.commit()
            return True
        except IntegrityError:
            session.rollback()
            return False
        finally:
            session.close()

    def count(self) -> int:
        session = self._session_factory()
        try:
            return session.query(RelationshipEdge).count()
        finally:
            session.close()

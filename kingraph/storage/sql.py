"""
SQL implementation of the relationship store, built on SQLModel.

The table mirrors the hosted `relationships` table residents were linked
through: `(id, resident_id, related_resident_id, relationship_type,
created_at)`, with a unique constraint on the relationship triple so that
racing duplicate inserts are rejected by the database.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine, select

from kingraph.edge import RelationshipEdge, new_edge_id, utc_now
from kingraph.errors import DuplicateRelationshipError, StoreUnavailableError
from kingraph.storage.interfaces import RelationshipStore


class RelationshipRow(SQLModel, table=True):
    """One stored relationship edge."""

    __tablename__ = "relationships"
    __table_args__ = (
        UniqueConstraint("resident_id", "related_resident_id", "relationship_type", name="uq_relationship_triple"),
    )

    id: str = Field(default_factory=new_edge_id, primary_key=True)
    resident_id: str = Field(index=True)
    related_resident_id: str = Field(index=True)
    relationship_type: str = Field()
    created_at: datetime = Field(default_factory=utc_now)

    def to_edge(self) -> RelationshipEdge:
        created_at = self.created_at
        # SQLite drops tzinfo on the way back out
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return RelationshipEdge(
            id=self.id,
            source_resident_id=self.resident_id,
            target_resident_id=self.related_resident_id,
            relationship_type=self.relationship_type,
            created_at=created_at,
        )


class SQLRelationshipStore(RelationshipStore):
    """
    Relationship store backed by any SQLAlchemy-supported database.

    Calls run synchronously on a single session; each write commits
    immediately since the engine never groups calls into a transaction.
    Database errors are rolled back and re-raised as `StoreUnavailableError`,
    except uniqueness violations, which become `DuplicateRelationshipError`.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", check_same_thread: bool = True):
        connect_args = {"check_same_thread": check_same_thread} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        self._session = Session(self.engine)

    def _row_by_triple(self, source_resident_id: str, target_resident_id: str, relationship_type: str) -> Optional[RelationshipRow]:
        statement = select(RelationshipRow).where(
            RelationshipRow.resident_id == source_resident_id,
            RelationshipRow.related_resident_id == target_resident_id,
            RelationshipRow.relationship_type == relationship_type,
        )
        return self._session.exec(statement).first()

    def _fail(self, action: str, exc: SQLAlchemyError) -> StoreUnavailableError:
        self._session.rollback()
        return StoreUnavailableError(f"Could not {action}: {exc}")

    async def find_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge | None:
        try:
            row = self._row_by_triple(source_resident_id, target_resident_id, relationship_type)
        except SQLAlchemyError as e:
            raise self._fail("look up relationship", e) from e
        return row.to_edge() if row is not None else None

    async def find_edges_by_source(self, resident_id: str) -> list[RelationshipEdge]:
        statement = select(RelationshipRow).where(RelationshipRow.resident_id == resident_id).order_by(RelationshipRow.created_at)
        try:
            rows = self._session.exec(statement).all()
        except SQLAlchemyError as e:
            raise self._fail("list relationships", e) from e
        return [row.to_edge() for row in rows]

    async def create_edge(
        self,
        source_resident_id: str,
        target_resident_id: str,
        relationship_type: str,
    ) -> RelationshipEdge:
        row = RelationshipRow(
            resident_id=source_resident_id,
            related_resident_id=target_resident_id,
            relationship_type=relationship_type,
            created_at=utc_now(),
        )
        try:
            self._session.add(row)
            self._session.commit()
            self._session.refresh(row)
        except IntegrityError as e:
            self._session.rollback()
            existing = self._row_by_triple(source_resident_id, target_resident_id, relationship_type)
            raise DuplicateRelationshipError(
                source_resident_id,
                target_resident_id,
                relationship_type,
                existing=existing.to_edge() if existing is not None else None,
            ) from e
        except SQLAlchemyError as e:
            raise self._fail("create relationship", e) from e
        return row.to_edge()

    async def delete_edge(self, edge_id: str) -> bool:
        try:
            row = self._session.get(RelationshipRow, edge_id)
            if row is None:
                return False
            self._session.delete(row)
            self._session.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete relationship", e) from e
        return True

    async def get_edge(self, edge_id: str) -> RelationshipEdge | None:
        try:
            row = self._session.get(RelationshipRow, edge_id)
        except SQLAlchemyError as e:
            raise self._fail("fetch relationship", e) from e
        return row.to_edge() if row is not None else None

    async def count(self) -> int:
        try:
            return self._session.exec(select(func.count()).select_from(RelationshipRow)).one()
        except SQLAlchemyError as e:
            raise self._fail("count relationships", e) from e

    def close(self) -> None:
        """Close the session and dispose of the engine's connections."""
        self._session.close()
        self.engine.dispose()

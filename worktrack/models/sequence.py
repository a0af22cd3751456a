from sqlmodel import SQLModel, Field


class Sequence(SQLModel, table=True):
    """
    Named monotonic counter.

    Holds the last value issued. Rows are only ever incremented, so a value
    is never handed out twice even after the record that used it is deleted.
    """
    __tablename__ = "sequences"

    name: str = Field(primary_key=True)
    value: int = Field(default=0, nullable=False)
